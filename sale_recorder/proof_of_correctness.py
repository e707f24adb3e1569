"""
Concurrent load test for POST /sales.

Resets the database, then fires many single-unit sales of one product from a
process pool and checks that stock reached exactly zero with one order per
successful sale. Start the API first:

    uvicorn sale_recorder.app:app
"""

import multiprocessing
import os
import sys
import time

import requests
from dotenv import load_dotenv

from .database import get_connection
from .reset_db import DEMO_INVENTORY, reset_database
from .sql_loader import execute_sql

load_dotenv()

# Configuration
API_URL = os.getenv("API_URL", "http://localhost:8000")
TOTAL_REQUESTS = int(os.getenv("TOTAL_REQUESTS", 1000))
CONCURRENT_PROCESSES = int(os.getenv("CONCURRENT_PROCESSES", 50))
PRODUCT_ID = int(os.getenv("PRODUCT_ID", 1))
CUSTOMER_ID = 1
SELLER_ID = 1


def attempt_purchase(request_id):
    """
    Worker function to send one purchase request.
    Returns the HTTP status code.
    """
    payload = {
        "order_id": request_id + 1,
        "customer_id": CUSTOMER_ID,
        "seller_id": SELLER_ID,
        "order_item_id": request_id + 1,
        "product_id": PRODUCT_ID,
        "quantity": 1,
    }
    try:
        response = requests.post(f"{API_URL}/sales", json=payload, timeout=30)
        return response.status_code
    except requests.RequestException:
        return 500


def run_test():
    print("=== Starting Proof of Correctness Test ===")

    initial_stock = next(r["stock"] for r in DEMO_INVENTORY if r["product_id"] == PRODUCT_ID)

    # 1. Reset Database to ensure clean state
    reset_database()

    # 2. Spawn concurrent workers
    print(f"Spawning {CONCURRENT_PROCESSES} concurrent processes to fire {TOTAL_REQUESTS} requests...")
    start_time = time.time()

    with multiprocessing.Pool(processes=CONCURRENT_PROCESSES) as pool:
        results = pool.map(attempt_purchase, range(TOTAL_REQUESTS))

    duration = time.time() - start_time
    print(f"Test completed in {duration:.2f} seconds.")

    # 3. Analyze HTTP Results
    success_count = results.count(201)
    sold_out_count = results.count(409)
    error_count = len(results) - success_count - sold_out_count

    print("\n--- HTTP Response Analysis ---")
    print(f"Total Requests: {len(results)}")
    print(f"Successful Sales (201 CREATED): {success_count} (Expected: {initial_stock})")
    print(f"Insufficient Stock (409 CONFLICT): {sold_out_count}")
    print(f"Errors/Other: {error_count}")

    # 4. Verify Database Consistency
    print("\n--- Database Consistency Check ---")
    with get_connection() as conn:
        row = execute_sql(conn, "get_stock", {"product_id": PRODUCT_ID}).fetchone()
        final_stock = row.stock if row else -999
        order_count = execute_sql(conn, "count_order_items", {"product_id": PRODUCT_ID}).scalar_one()

    print(f"Final DB Stock: {final_stock} (Expected: 0)")
    print(f"Total Order Records: {order_count} (Expected: {initial_stock})")

    # 5. Final Verdict
    if final_stock == 0 and order_count == initial_stock and success_count == initial_stock:
        print("\nSUCCESS: Strict consistency maintained.")
        return True

    print("\nFAILURE: Inconsistency detected!")
    if final_stock < 0:
        print("CRITICAL: Overselling occurred (Stock < 0)!")
    if final_stock > 0:
        print("CRITICAL: Underselling occurred (Stock > 0 but test finished)!")
    if success_count != order_count:
        print(f"Mismatch: API reported {success_count} successes, but {order_count} orders exist.")
    return False


if __name__ == "__main__":
    print("NOTE: Make sure 'uvicorn sale_recorder.app:app' is running on port 8000 before proceeding.")
    try:
        requests.get(f"{API_URL}/health", timeout=1)
    except requests.RequestException:
        print(f"Error: Could not connect to {API_URL}. Please start the server first.")
        sys.exit(1)

    sys.exit(0 if run_test() else 1)
