#!/usr/bin/env python3
import json
import logging
import sys

import requests

logger = logging.getLogger(__name__)


def check_rpc_health(rpc_url: str, timeout: float = 10) -> bool:
    """Sends a 'status' request to a NEAR JSON-RPC endpoint and checks the response."""
    headers = {'Content-Type': 'application/json'}
    payload = {
        "jsonrpc": "2.0",
        "method": "status",
        "params": [],
        "id": "near-deploy"
    }

    logger.info(f"Checking endpoint: {rpc_url}...")

    try:
        response = requests.post(rpc_url, data=json.dumps(payload), headers=headers, timeout=timeout)
        response.raise_for_status()

        response_json = response.json()

        if response_json.get("error"):
            error = response_json["error"]
            error_message = error.get("message") or error.get("name") or "Unknown error"
            logger.error(f"❌ Endpoint returned an error: {error_message}")
            return False

        result = response_json.get("result") or {}
        sync_info = result.get("sync_info") or {}

        if not sync_info:
            logger.error("❌ Endpoint returned no sync info.")
            return False

        if sync_info.get("syncing"):
            logger.error(f"❌ Endpoint is still syncing (block {sync_info.get('latest_block_height')}).")
            return False

        logger.info(f"✅ Endpoint is healthy. Chain: {result.get('chain_id')}, "
                    f"block: {sync_info.get('latest_block_height')}")
        return True

    except requests.exceptions.JSONDecodeError:
        logger.error("❌ Failed to decode JSON response. The endpoint may not be a valid RPC server.")
        return False
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Connection failed: {e}")
        return False


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    if len(sys.argv) < 2:
        print("Usage: python check_rpc.py <rpc_url>")
        sys.exit(1)

    url_to_check = sys.argv[1]
    if not check_rpc_health(url_to_check):
        sys.exit(1)
