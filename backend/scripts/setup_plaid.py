#!/usr/bin/env python3
"""Plaid API setup script.

Validates Plaid API credentials by creating a link token, then offers to
store them in the OS keychain. Institutions are linked afterwards through
Plaid Link in the browser, not through this script.

Usage:
    1. Sign up at https://dashboard.plaid.com/
    2. Get your client_id and secret from the Keys page
    3. Run ``python -m scripts.setup_plaid`` and follow the prompts
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from integrations.exceptions import ProviderError
from integrations.plaid_client import PlaidClient
from services.credential_manager import set_credential

ENVIRONMENT_CHOICES = {"1": "sandbox", "2": "production"}


def validate_credentials(client_id: str, secret: str, environment: str) -> None:
    """Create a throwaway link token with the given credentials.

    Raises:
        ProviderError: Plaid rejected the credentials or was unreachable.
    """
    client = PlaidClient(client_id=client_id, secret=secret, environment=environment)
    link_token = client.create_link_token(client_user_id="setup-check")
    if not link_token:
        raise ProviderError("Plaid returned an empty link token", provider_name="Plaid")


def store_in_keychain(credentials: dict[str, str]) -> list[str]:
    """Store each credential in the keychain and return the keys that failed."""
    return [key for key, value in credentials.items() if not set_credential(key, value)]


def main():
    """Prompt for credentials, validate them and optionally store them."""
    print("Plaid API Setup")
    print("=" * 50)
    print()

    client_id = input("Enter your Plaid client_id: ").strip()
    if not client_id:
        print("Error: No client_id provided")
        sys.exit(1)

    secret = input("Enter your Plaid secret: ").strip()
    if not secret:
        print("Error: No secret provided")
        sys.exit(1)

    print()
    print("Choose environment:")
    print("  1. sandbox (for testing with fake data)")
    print("  2. production (for live use)")
    env_choice = input("Enter choice (1 or 2) [1]: ").strip() or "1"
    environment = ENVIRONMENT_CHOICES.get(env_choice, "sandbox")

    print()
    print(f"Validating credentials against {environment} environment...")
    try:
        validate_credentials(client_id, secret, environment)
    except ProviderError as e:
        print(f"Error: {e}")
        print()
        print("Each Plaid environment has its own secret; check that the")
        print("secret matches the environment you selected.")
        sys.exit(1)

    print("Credentials OK.")
    print(f"Set PLAID_ENVIRONMENT={environment} in your .env file.")

    answer = input("\nStore client_id and secret in the OS keychain? [Y/n] ").strip().lower()
    if answer not in ("", "y", "yes"):
        print()
        print("Skipped keychain storage. Add these to your .env file instead:")
        print(f"PLAID_CLIENT_ID={client_id}")
        print(f"PLAID_SECRET={secret}")
        return

    failed = store_in_keychain({"PLAID_CLIENT_ID": client_id, "PLAID_SECRET": secret})
    if failed:
        print(f"Failed to store: {', '.join(failed)}")
        sys.exit(1)
    print("Stored PLAID_CLIENT_ID and PLAID_SECRET in keychain.")


if __name__ == "__main__":
    main()
