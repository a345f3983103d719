#!/usr/bin/env python3
"""
Send a diagnostic confirmation email through a running relay.

Usage:
    python scripts/send_test_email.py customer-test@example.com "Test Customer"

RELAY_URL defaults to http://localhost:8081.
"""
import asyncio
import os
import sys

import httpx


async def send(email: str, name: str) -> bool:
    base_url = os.getenv("RELAY_URL", "http://localhost:8081")

    print("=" * 60)
    print("TEST EMAIL")
    print("=" * 60)
    print(f"   Relay: {base_url}")
    print(f"   To:    {email}")

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
            response = await client.post("/test-email", json={"email": email, "name": name})
    except httpx.HTTPError as e:
        print(f"\n❌ Request failed: {e}")
        return False

    print(f"\nStatus: {response.status_code}")
    print(f"Headers: {dict(response.headers)}")
    print(f"Response: {response.text}")

    if response.status_code != 200:
        return False
    return bool(response.json().get("success"))


if __name__ == "__main__":
    recipient = sys.argv[1] if len(sys.argv) > 1 else "customer-test@example.com"
    display_name = sys.argv[2] if len(sys.argv) > 2 else "Test Customer"
    result = asyncio.run(send(recipient, display_name))
    sys.exit(0 if result else 1)
