"""Push sample expense records to a running Expense Bridge.

Usage:
    python scripts/send_test_data.py --url http://localhost:8000 [--file data.json]
"""

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path

from app.connectors.bitable.client import BitablePushClient, PushClientError

SAMPLE_RECORDS = [
    {
        "fields": {"日期": date.today().isoformat(), "金额": 35.5, "分类": "餐饮", "备注": "午餐"},
        "action": "create",
    },
    {
        "id": "rec_transport_001",
        "fields": {"日期": date.today().isoformat(), "金额": 12, "分类": "交通", "备注": ""},
        "updated_at": date.today().isoformat(),
    },
]


async def run(args: argparse.Namespace) -> int:
    payload = (
        json.loads(Path(args.file).read_text(encoding="utf-8"))
        if args.file
        else {"records": SAMPLE_RECORDS}
    )
    async with BitablePushClient(args.url, token=args.token, sign=not args.unsigned) as client:
        try:
            if not await client.ping():
                print("Server did not answer ping", file=sys.stderr)
                return 1
            result = await client.send_payload(payload)
            print(json.dumps(result, ensure_ascii=False, indent=2))
            records = await client.list_records()
            print(f"Server now holds {len(records)} records")
        except PushClientError as e:
            print(f"Push failed: {e} (status {e.status_code})", file=sys.stderr)
            return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--url", default="http://localhost:8000")
    parser.add_argument("--file", help="JSON payload to send instead of the sample records")
    parser.add_argument("--token", default=None, help="verification token (defaults to settings)")
    parser.add_argument("--unsigned", action="store_true", help="omit signature headers")
    sys.exit(asyncio.run(run(parser.parse_args())))


if __name__ == "__main__":
    main()
