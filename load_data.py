"""
Data Loader Script - Imports a JSON roster into the platform via API.

Reads a JSON array of student objects (the same document the service
stores under its "students" key, e.g. an export from another install)
and submits each one through the form endpoint. Ids in the file are
ignored; the service assigns fresh ones.

Usage:
    python load_data.py                                   # Default URL and file
    python load_data.py http://localhost:8000             # Custom API URL
    python load_data.py http://localhost:8000 roster.json # Custom file
"""

import json
import os
import sys

import httpx


def submit_records(client: httpx.Client, api_url: str, records: list) -> dict:
    """
    Submit every record through POST /api/students.

    Returns a summary with the number created and the validation
    failures of each rejected entry.
    """
    submit_url = f"{api_url}/api/students"
    created = 0
    rejected = []

    # A submit while an edit is open would overwrite the edited record
    client.post(f"{api_url}/api/students/cancel").raise_for_status()

    for index, record in enumerate(records):
        resp = client.post(submit_url, json=record)
        if resp.status_code == 422:
            rejected.append({"index": index, "errors": resp.json()["errors"]})
            continue
        resp.raise_for_status()
        created += 1

    return {"total": len(records), "created": created, "rejected": rejected}


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")
    data_file = sys.argv[2] if len(sys.argv) > 2 else "students.json"

    if not os.path.exists(data_file):
        print(f"Error: Could not find {data_file}")
        sys.exit(1)

    with open(data_file, "r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        print(f"Error: {data_file} must contain a JSON array of students")
        sys.exit(1)

    print(f"Loaded {len(records)} students from {data_file}")
    print(f"Sending to {api_url}/api/students ...")

    with httpx.Client(timeout=30.0) as client:
        summary = submit_records(client, api_url, records)

    print()
    print("=" * 50)
    print("  IMPORT SUMMARY")
    print("=" * 50)
    print(f"  Total received:  {summary['total']}")
    print(f"  Created:         {summary['created']}")
    print(f"  Rejected:        {len(summary['rejected'])}")
    print("=" * 50)

    for item in summary["rejected"]:
        fields = ", ".join(e["field"] for e in item["errors"])
        print(f"  ❌ #{item['index']}: {fields}")

    print()
    print("✅ Import complete!")


if __name__ == "__main__":
    main()
