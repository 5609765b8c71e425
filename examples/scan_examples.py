"""
Example walking a table page by page with valves and dosages.

Run against LocalStack:
    export DYNAMODB_ENDPOINT_URL=http://localhost:4566
    export AWS_ACCESS_KEY_ID=test AWS_SECRET_ACCESS_KEY=test
    python examples/scan_examples.py

The "Movies" table must exist with a string hash key "title".
"""

import logging

from dynavalve import (
    ClientConfig,
    Region,
    RetryPolicy,
    RetryValve,
    ScanValve,
    begins_with,
    greater_or_equal,
    iterate,
    pages,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

region = Region.from_config(ClientConfig())
movies = region.table("Movies")


# 1. Explicit cursor: every next() returns a new dosage
print("\n--- Page by page ---")
dosage = movies.scan(ScanValve().with_limit(2))
page_number = 1
while True:
    print(f"page {page_number}: {[m['title'] for m in dosage.items()]}")
    if not dosage.has_next():
        break
    dosage = dosage.next()
    page_number += 1


# 2. Projection and filter
print("\n--- Well rated, titles only ---")
valve = ScanValve().with_limit(10).with_attribute_to_get("title")
for movie in iterate(movies.scan(valve, {"rating": greater_or_equal(8.0)}, ["rating"])):
    print(f"  {movie['title']}: {movie['rating']}")


# 3. Lazy page iteration with retries on throttling
print("\n--- With retries ---")
retrying = RetryValve(ScanValve().with_limit(5), RetryPolicy(max_attempts=5))
for page in pages(movies.scan(retrying, {"title": begins_with("The")})):
    print(f"  {len(page.items())} items")
