"""Seed script: replays a few editing sessions against the REST API.

Usage:
    python scripts/seed.py              # uses http://localhost:8000
    python scripts/seed.py http://host  # custom base URL
"""

import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

GENERATED_BLOCK = (
    "def parse_config(path):\n"
    "    with open(path) as fh:\n"
    "        return json.load(fh)\n"
)

# Each session maps a workspace path to (reason, changes) tuples sent as consecutive versions.
SESSIONS = {
    "src/config.py": [
        (None, [{"start_line": 2, "end_line": 2, "text": GENERATED_BLOCK}]),
        (None, [{"start_line": 3, "start_character": 4, "end_line": 3, "end_character": 8,
                 "text": "with", "range_length": 4}]),
    ],
    "src/handlers.py": [
        (None, [{"start_line": 0, "end_line": 0, "text": GENERATED_BLOCK},
                {"start_line": 10, "end_line": 10, "text": GENERATED_BLOCK}]),
        ("undo", [{"start_line": 10, "end_line": 13, "text": "", "range_length": 80}]),
    ],
}


def resolve(client: httpx.Client, path: str) -> str:
    resp = client.post(f"{BASE_URL}/api/snapshots/resolve", json={"path": path})
    resp.raise_for_status()
    return resp.json()["document_key"]


def clear(client: httpx.Client, key: str) -> None:
    resp = client.post(f"{BASE_URL}/api/snapshots/{key}/clear")
    resp.raise_for_status()


def commit(client: httpx.Client, key: str, version: int, reason: str | None, changes: list[dict]) -> dict:
    resp = client.post(
        f"{BASE_URL}/api/snapshots/{key}/commits",
        json={"document_version": version, "reason": reason, "changes": changes},
    )
    resp.raise_for_status()
    return resp.json()


def main() -> None:
    print(f"Seeding against {BASE_URL}\n")

    with httpx.Client(timeout=10) as client:
        for path, session in SESSIONS.items():
            key = resolve(client, path)
            print(f"{path} -> {key}:")
            clear(client, key)
            for version, (reason, changes) in enumerate(session, start=1):
                snapshot = commit(client, key, version, reason, changes)
                ranges = ", ".join(f"{a['start_line']}-{a['end_line']}" for a in snapshot["annotations"])
                print(f"  v{version}: [{ranges}]")

    print("\nDone!")


if __name__ == "__main__":
    main()
