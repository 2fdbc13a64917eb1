"""
Price Threshold Monitor.

A real-time monitor that consumes a streaming price feed, lets an operator
register watches (a symbol plus a lower/upper price band), and raises a
one-shot alert the moment a watched symbol's price leaves its band.

This package provides:
- Data models for watches, ticks, alert records, and feed health
- A Binance mark-price feed with fixed-delay reconnection
- The watch registry, match engine, alert lifecycle, and alert history
- Key/value persistence gateways (memory, JSON file, Redis)
- An HTTP/websocket operator API and a service entry point
"""

__version__ = "0.1.0"
