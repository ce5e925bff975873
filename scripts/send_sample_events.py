#!/usr/bin/env python3
"""
Send a handful of sample events to Klaviyo and print the account's lists.

Reads KLAVIYO_API_KEY / KLAVIYO_PRIVATE_API_KEY from .env
"""

import random
from datetime import datetime, timedelta

from dotenv import load_dotenv
load_dotenv()

from klaviyo_driver import KlaviyoDriver, DriverError

EVENT_TYPES = [
    "Viewed Product",
    "Added to Cart",
    "Started Checkout",
    "Placed Order",
]

PRODUCTS = [
    {"id": "prod_001", "name": "Wireless Headphones", "price": 79.99},
    {"id": "prod_002", "name": "Running Shoes", "price": 129.99},
    {"id": "prod_003", "name": "Coffee Maker", "price": 89.99},
]

CUSTOMERS = [f"sample.customer.{i:03d}@example.com" for i in range(1, 6)]

client = KlaviyoDriver.from_env()

try:
    if client.api_key:
        print(f"Sending sample events for {len(CUSTOMERS)} customers...")
        for email in CUSTOMERS:
            client.identify(email=email, properties={"source": "sample-script"})
            client.track_once("Signed Up", email=email)

            for event in EVENT_TYPES:
                product = random.choice(PRODUCTS)
                accepted = client.track(
                    event,
                    email=email,
                    properties={"product_id": product["id"], "value": product["price"]},
                    time=datetime.now() - timedelta(minutes=random.randint(0, 600))
                )
                print(f"  {'✓' if accepted else '✗'} {email}: {event}")

    if client.private_api_key:
        lists = client.get_lists()
        if isinstance(lists, DriverError):
            print(f"\n✗ Could not fetch lists: {lists.message}")
        else:
            print(f"\n✓ Lists: {lists}")
finally:
    client.close()
