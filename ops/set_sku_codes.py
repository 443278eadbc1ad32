from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any
import urllib.request
import urllib.error


DEFAULT_BASE_URL = os.getenv("BACKOFFICE_BASE_URL", "http://localhost:8000")
DEFAULT_ADMIN_ID = os.getenv("BACKOFFICE_ADMIN_ID", "")

DEFAULT_TIMEOUT_SECONDS = 30


def http_put(url: str, payload: dict[str, Any], admin_id: str) -> dict[str, Any]:
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        url=url,
        data=data,
        method="PUT",
        headers={
            "Content-Type": "application/json",
            "X-Admin-Id": admin_id,
        },
    )
    try:
        with urllib.request.urlopen(req, timeout=DEFAULT_TIMEOUT_SECONDS) as resp:
            raw = resp.read().decode("utf-8")
            return json.loads(raw) if raw else {}
    except urllib.error.HTTPError as e:
        body = e.read().decode("utf-8", errors="replace")
        print(f"HTTP {e.code} {e.reason} for {url}", file=sys.stderr)
        if body:
            print(body, file=sys.stderr)
        return {"error": {"status": e.code, "reason": e.reason, "body": body}}
    except urllib.error.URLError as e:
        print(f"Network error for {url}: {e}", file=sys.stderr)
        return {"error": {"reason": str(e)}}


def main() -> int:
    p = argparse.ArgumentParser(description="Set tenant SKU codes from a JSON file ({tenant_id: code}).")
    p.add_argument("--file", required=True, help="path to json file")
    p.add_argument("--base-url", default=DEFAULT_BASE_URL)
    p.add_argument("--admin-id", default=DEFAULT_ADMIN_ID)
    p.add_argument("--yes", action="store_true", help="required to write (safety)")
    args = p.parse_args()

    if not args.admin_id:
        print("Missing BACKOFFICE_ADMIN_ID (env) or --admin-id", file=sys.stderr)
        return 2

    try:
        with open(args.file, "r", encoding="utf-8") as f:
            codes = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Failed to read JSON file: {e}", file=sys.stderr)
        return 2

    if not isinstance(codes, dict) or not all(isinstance(v, str) for v in codes.values()):
        print("Invalid payload: expected a JSON object mapping tenant id to code.", file=sys.stderr)
        return 2

    if not args.yes:
        for tenant_id, code in sorted(codes.items()):
            print(f"would set {tenant_id} -> {code}")
        print("Dry run; pass --yes to apply.")
        return 0

    base_url = args.base_url.rstrip("/")
    failed = 0
    for tenant_id, code in sorted(codes.items()):
        resp = http_put(f"{base_url}/v1/admin/tenants/{tenant_id}/sku-code", {"code": code}, args.admin_id)
        if "error" in resp:
            failed += 1
        else:
            print(json.dumps(resp, ensure_ascii=False))
    return 1 if failed else 0

if __name__ == "__main__":
    raise SystemExit(main())
