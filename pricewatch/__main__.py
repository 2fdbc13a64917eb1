"""Run the price monitor service: python -m pricewatch"""

from pricewatch.services.monitor import run

if __name__ == "__main__":
    run()
