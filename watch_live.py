"""Live check: connect to a family's status stream and print every push."""

import asyncio
import json
import sys

import websockets


HOST = "127.0.0.1:8000"
FAMILY_CODE = sys.argv[1] if len(sys.argv) > 1 else "4821"
STATUS_URI = f"ws://{HOST}/ws/families/{FAMILY_CODE}/status"


def print_update(data: dict) -> None:
    if data.get("type") == "critical_alert":
        print("!" * 70)
        print(f"[ALERT] {data.get('elderly_name')}: {data.get('message')}")
        print("!" * 70)
        return

    print("=" * 70)
    print(f"[STATUS] family={data.get('family_code')} state={data.get('state')}")
    if data.get("error"):
        print(f"  Error: {data['error']}")

    status = data.get("status")
    if status:
        print(f"  Level:    {status['level']} ({status['title']})")
        print(f"  Message:  {status['message']}")
        print(f"  Inactive: {status['minutes_since_last_activity']} min "
              f"(threshold {status['alert_hours']} h)")
        if status["level"] == "warning":
            print(f"  Escalates in {status['minutes_until_next_level']} min")
        if status["in_sleep_mode"]:
            print(f"  Sleep mode: {status['sleep_window']} "
                  f"(suppressed={status['sleep_suppressed']})")
        if not status["survival_signal_enabled"]:
            print("  Monitoring is turned off by the parent")
    print()


async def keepalive(ws) -> None:
    while True:
        await asyncio.sleep(30)
        await ws.send("ping")


async def main():
    print(f"Connecting to {STATUS_URI} ...")
    async with websockets.connect(STATUS_URI) as ws:
        pinger = asyncio.create_task(keepalive(ws))
        try:
            while True:
                raw = await ws.recv()
                if raw == "pong":
                    continue
                print_update(json.loads(raw))
        finally:
            pinger.cancel()


if __name__ == "__main__":
    asyncio.run(main())
