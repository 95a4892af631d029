"""Walk through authorize, login, get-address and sign with in-memory backends."""

import asyncio

from guardian import GuardianBackend, GuardianConfig, build_broker
from guardian.signing import verify_signature


async def main():
    """Enroll a user on first login and sign a digest with their key."""
    config = GuardianConfig(inmemory={"secret_ids": ["demo-secret-id"]})
    broker = build_broker(config)
    backend = GuardianBackend(broker)

    # The in-memory IdP only knows accounts registered up front
    broker.identity.register_account("alice@example.com", "correct horse")

    await backend.handle("update", "authorize", {"secret_id": "demo-secret-id"})

    login = await backend.handle(
        "update",
        "login",
        {"okta_username": "alice@example.com", "okta_password": "correct horse"},
    )
    token = login["session_token"]

    address = (await backend.handle("read", "sign", {"session_token": token}))["address"]
    digest = "0x" + "ab" * 32
    signature = (
        await backend.handle("update", "sign", {"session_token": token, "raw_data": digest})
    )["signature"]

    print(f"✅ Enrolled alice@example.com")
    print(f"📋 Address: {address}")
    print(f"🔏 Signature: {signature}")
    print(f"🔍 Verified: {verify_signature(digest, signature, address)}")

    await broker.aclose()


if __name__ == "__main__":
    asyncio.run(main())
