#!/usr/bin/env python3
"""Seed a demo seller, client, catalog and invoice through the HTTP API.

Flow:
1) Login as admin
2) Create (or reuse) one seller and one client account
3) Create (or reuse) the demo products
4) Create one draft invoice billing the client for every product
"""

import argparse
import os
import sys
from typing import Any, Dict, List

import httpx


DEFAULT_BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/api"

DEMO_USERS = [
    {"name": "Demo Shop", "email": "shop@example.com", "role": "seller"},
    {"name": "Demo Client", "email": "client@example.com", "role": "client"},
]

DEMO_PRODUCTS = [
    {"name": "Consulting Hour", "description": "One hour of consulting.", "unit_price": "120.00"},
    {"name": "Support Plan", "description": "Monthly support subscription.", "unit_price": "49.90"},
    {"name": "Setup Fee", "description": "One-off onboarding fee.", "unit_price": "250.00"},
]


class ApiError(RuntimeError):
    pass


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _require_ok(response: httpx.Response, context: str) -> Any:
    payload = _json_or_text(response)
    if response.status_code >= 400:
        raise ApiError(f"{context} failed ({response.status_code}): {payload}")
    return payload


def _is_taken(response: httpx.Response, field: str) -> bool:
    if response.status_code != 422:
        return False
    payload = _json_or_text(response)
    errors = payload.get("errors") if isinstance(payload, dict) else None
    return isinstance(errors, dict) and field in errors


def login_admin(client: httpx.Client, email: str, password: str) -> None:
    login_resp = client.post(
        f"{API_PREFIX}/auth/login",
        json={"email": email, "password": password},
    )
    payload = _require_ok(login_resp, "Admin login")
    role = (payload.get("user") or {}).get("role")
    if role != "admin":
        raise ApiError(f"Authenticated user is not admin (role={role!r})")
    client.headers["Authorization"] = f"Bearer {payload['access_token']}"


def ensure_user(client: httpx.Client, spec: Dict[str, str], password: str) -> Dict[str, Any]:
    resp = client.post(f"{API_PREFIX}/users", json={**spec, "password": password})
    if _is_taken(resp, "email"):
        listing = _require_ok(client.get(f"{API_PREFIX}/users"), "List users")
        for user in listing:
            if user.get("email") == spec["email"]:
                return user
        raise ApiError(f"User {spec['email']} reported as taken but not listed")
    return _require_ok(resp, f"Create user '{spec['email']}'")


def ensure_product(client: httpx.Client, spec: Dict[str, str]) -> Dict[str, Any]:
    resp = client.post(f"{API_PREFIX}/products", json=spec)
    if _is_taken(resp, "name"):
        listing = _require_ok(client.get(f"{API_PREFIX}/products"), "List products")
        for product in listing:
            if product.get("name") == spec["name"]:
                return product
        raise ApiError(f"Product {spec['name']} reported as taken but not listed")
    return _require_ok(resp, f"Create product '{spec['name']}'")


def create_invoice(
    client: httpx.Client,
    *,
    seller_id: str,
    client_id: str,
    products: List[Dict[str, Any]],
) -> Dict[str, Any]:
    items = [
        {"product_id": product["id"], "quantity": 1, "total_price": str(product["unit_price"])}
        for product in products
    ]
    resp = client.post(
        f"{API_PREFIX}/invoices",
        json={"seller_id": seller_id, "client_id": client_id, "items": items},
    )
    return _require_ok(resp, "Create invoice")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data via the invoicing API")
    parser.add_argument("--base-url", default=os.getenv("INVOICING_BASE_URL", DEFAULT_BASE_URL))
    parser.add_argument("--admin-email", default=os.getenv("DEFAULT_ADMIN_EMAIL", "admin@example.com"))
    parser.add_argument("--admin-password", default=os.getenv("DEFAULT_ADMIN_PASSWORD", "CHANGE_ME"))
    parser.add_argument("--demo-password", default=os.getenv("DEMO_USER_PASSWORD", "demo-pass-123"))
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if args.admin_password == "CHANGE_ME":
        print("ERROR: Set --admin-password or DEFAULT_ADMIN_PASSWORD", file=sys.stderr)
        return 2

    with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=30.0, follow_redirects=True) as client:
        login_admin(client, args.admin_email, args.admin_password)

        users = {spec["role"]: ensure_user(client, spec, args.demo_password) for spec in DEMO_USERS}
        products = [ensure_product(client, spec) for spec in DEMO_PRODUCTS]
        invoice = create_invoice(
            client,
            seller_id=users["seller"]["id"],
            client_id=users["client"]["id"],
            products=products,
        )

    print("Seeded:")
    for role, user in users.items():
        print(f"- {role}: id={user['id']}, email={user['email']}")
    for product in products:
        print(f"- product: id={product['id']}, name={product['name']}")
    print(f"- invoice: id={invoice['id']}, items={len(invoice['items'])}, status={invoice['status']}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except ApiError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        raise SystemExit(1)
