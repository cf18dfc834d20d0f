"""
Healthcheck script for the Docker container.

This script makes a GET request to the service's /health endpoint and exits with a
status code of 0 if the response is successful (200 OK), and 1 otherwise.
"""
import os
import sys
import httpx

HEALTHCHECK_URL = os.getenv("HEALTHCHECK_URL", "http://localhost:80/health")

try:
    response = httpx.get(HEALTHCHECK_URL, timeout=3.0)

    if response.status_code == 200:
        print(f"Healthcheck passed (provider: {response.json().get('provider')}).")
        sys.exit(0)
    else:
        print(f"Healthcheck failed with status code: {response.status_code}")
        sys.exit(1)

except (httpx.RequestError, ValueError) as e:
    # Exit with a failure code if the request fails or the body is not JSON.
    print(f"Healthcheck failed with error: {e}")
    sys.exit(1)
