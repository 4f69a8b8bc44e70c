# scripts/test/simulate_event.py
"""Send RFID reader signals to the hardware lane, as an entry or exit gate would."""

import argparse
import requests
from datetime import datetime, timezone

BACKEND_URL = "http://127.0.0.1:5000/api/v1/hardware"


def send_signal(gate, card, parking_id, sensor, api_key, base_url=BACKEND_URL):
    payload = {
        "cardNumber": card,
        "parkingId": parking_id,
        "sensorId": sensor,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    resp = requests.post(f"{base_url}/{gate}", json=payload,
                         headers={"X-API-Key": api_key}, timeout=10)
    body = resp.json()
    icon = "✅" if body.get("action") == "OPEN_BARRIER" else "⛔"
    print(f"{icon} {gate} card={card} parking={parking_id} → HTTP {resp.status_code}: "
          f"{body.get('action')} {body.get('message')}")
    if body.get("data"):
        print(f"   {body['data']}")
    return body


def send_heartbeat(sensor, parking_id, api_key, base_url=BACKEND_URL):
    resp = requests.post(f"{base_url}/heartbeat", json={"sensorId": sensor, "parkingId": parking_id},
                         headers={"X-API-Key": api_key}, timeout=10)
    print(f"💓 heartbeat sensor={sensor} → HTTP {resp.status_code}: {resp.json()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate RFID reader signals for testing")
    parser.add_argument("--gate", default="entry", choices=["entry", "exit", "heartbeat", "cycle"])
    parser.add_argument("--card", default="CARD0001")
    parser.add_argument("--parking", type=int, default=1)
    parser.add_argument("--sensor", default="GATE-SIM-1")
    parser.add_argument("--api-key", default="CHANGE_ME")
    parser.add_argument("--url", default=BACKEND_URL)
    args = parser.parse_args()

    if args.gate == "heartbeat":
        send_heartbeat(args.sensor, args.parking, args.api_key, args.url)
    elif args.gate == "cycle":
        send_signal("entry", args.card, args.parking, args.sensor, args.api_key, args.url)
        send_signal("exit", args.card, args.parking, args.sensor, args.api_key, args.url)
    else:
        send_signal(args.gate, args.card, args.parking, args.sensor, args.api_key, args.url)
