"""Shared fixtures and collaborator fakes."""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple

import pytest

from guardian.broker import GuardianBroker, build_broker
from guardian.config import GuardianConfig
from guardian.errors import UpstreamError
from guardian.keystore import InMemoryKeyStore
from guardian.keystore.base import Record
from guardian.models import AccountStatus, UserRecord


@pytest.fixture
def config() -> GuardianConfig:
    return GuardianConfig(
        timeouts={"upstream": 1.0, "retry_backoff": 0.0},
        inmemory={"secret_ids": ["s1"]},
    )


@pytest.fixture
def broker(config: GuardianConfig) -> GuardianBroker:
    broker = build_broker(config)
    broker.identity.register_account("alice", "pw1")
    broker.identity.register_account("bob", "pw2")
    return broker


class SlowKeyStore(InMemoryKeyStore):
    """Delays reads; ``stalls`` counts down how many reads hang."""

    def __init__(self, delay: float, stalls: int = 1) -> None:
        super().__init__()
        self.delay = delay
        self.stalls = stalls
        self.reads = 0

    async def get(self, path: str) -> Optional[Record]:
        self.reads += 1
        if self.stalls > 0:
            self.stalls -= 1
            await asyncio.sleep(self.delay)
        return await super().get(path)


class BrokenWriteKeyStore(InMemoryKeyStore):
    """Fails creates while ``broken``, remembering what it was asked to write."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = True
        self.attempted: list[Record] = []

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        self.attempted.append(dict(record))
        if self.broken:
            raise UpstreamError("keystore", "disk full", status=507)
        return await super().create_if_absent(path, record)


class RacingKeyStore(InMemoryKeyStore):
    """Simulates another process enrolling the same user first.

    The first ``get`` reports nothing; before the create lands a foreign
    record is written to the same path.
    """

    def __init__(self, foreign: Record) -> None:
        super().__init__()
        self.foreign = foreign

    async def create_if_absent(self, path: str, record: Record) -> Tuple[Record, bool]:
        await super().put(path, self.foreign)
        return await super().create_if_absent(path, record)


class FlakyDirectory:
    """Identity provider whose directory can be made to misbehave."""

    def __init__(self, status: AccountStatus = AccountStatus.ABSENT, fail_create: bool = False) -> None:
        self.status = status
        self.fail_create = fail_create
        self.created: list[UserRecord] = []

    async def login(self, username: str, password: str) -> Optional[str]:
        return f"token-for-{username}" if password == "ok" else None

    async def user_exists(self, username: str) -> AccountStatus:
        return self.status

    async def create_user(self, record: UserRecord) -> None:
        if self.fail_create:
            raise UpstreamError("vault-okta", "permission denied", status=403)
        self.created.append(record)
