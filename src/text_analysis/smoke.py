"""Command-line smoke check against a running frontend.

Usage: python -m text_analysis.smoke [FRONTEND_URL] [TEXT]
"""

import json
import sys

import requests

FRONTEND_URL = "http://127.0.0.1:7860"
SAMPLE_TEXT = "The mitochondria is the powerhouse of the cell."


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    url = (argv[0] if len(argv) > 0 else FRONTEND_URL).rstrip("/")
    text = argv[1] if len(argv) > 1 else SAMPLE_TEXT

    try:
        response = requests.post(f"{url}/api/analyze", json={"text": text}, timeout=60)
    except requests.exceptions.ConnectionError:
        print(f"Could not connect to the frontend at {url}. Is it running?")
        return 1

    if response.status_code != 200:
        print(f"Error {response.status_code}: {response.text}")
        return 1

    print(json.dumps(response.json(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
