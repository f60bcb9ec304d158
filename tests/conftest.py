# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ZCORP_TOKEN_ADDRESS", "0x1111111111111111111111111111111111111111")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("NONCE_BACKEND", "memory")

from zcorp_launcher.api.v1 import dependencies as deps
from zcorp_launcher.core.config import GateConfig
from zcorp_launcher.db.session import Base
from zcorp_launcher.db.session import get_db as app_get_session
from zcorp_launcher.main import app as fastapi_app
from zcorp_launcher.schemas.deploy import TokenConfig
from zcorp_launcher.services.authenticator import RequestAuthenticator
from zcorp_launcher.services.deployer import SubmittedDeployment
from zcorp_launcher.services.nonce_store import InMemoryNonceStore
from zcorp_launcher.services.rate_limiter import RateLimiter

TEST_DB_URL = "sqlite://"

# Fixed "now" for every component that takes a clock.
NOW = 1_700_000_000

HOLDER_KEY = "0x" + "4c" * 32
OTHER_KEY = "0x" + "7d" * 32

TOKEN_ADDRESS = "0x00000000000000000000000000000000000000AA"
TX_HASH = "0x" + "ab" * 32
PREDICTED_ADDRESS = "0x00000000000000000000000000000000000000BB"

ONE_PERCENT_18 = 10**16


class FakeClock:
    """Settable replacement for ``time.time``."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLedger:
    """In-memory reference token with per-address balances."""

    def __init__(self, decimals: int = 18) -> None:
        self.balances: dict[str, int] = {}
        self.decimals = decimals
        self.error: Exception | None = None

    def fund(self, address: str, amount: int) -> None:
        self.balances[address.lower()] = amount

    def read_balance(self, address: str) -> int:
        if self.error is not None:
            raise self.error
        return self.balances.get(address.lower(), 0)

    def read_decimals(self) -> int:
        if self.error is not None:
            raise self.error
        return self.decimals


class FakeDeployer:
    """Deployer double that records calls instead of touching a chain."""

    def __init__(self) -> None:
        self.submitted: list[tuple[str, str]] = []
        self.error: Exception | None = None

    def submit_deployment(
        self, config: TokenConfig, deployed_by: str, deployment_id: str
    ) -> SubmittedDeployment:
        self.submitted.append((deployed_by, deployment_id))
        if self.error is not None:
            raise self.error
        return SubmittedDeployment(token_address=TOKEN_ADDRESS, tx_hash=TX_HASH)

    def simulate_deployment(self, config: TokenConfig, deployed_by: str) -> str:
        if self.error is not None:
            raise self.error
        return PREDICTED_ADDRESS


def sign_text(account: LocalAccount, message: str) -> str:
    """Personal-sign ``message`` and return the 0x-prefixed signature."""
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


def token_config_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Test Token",
        "symbol": "TEST",
        "image": "https://example.com/token.png",
        "description": "A token for tests",
        "pool": {
            "pairedToken": "0x4200000000000000000000000000000000000006",
            "positions": "Standard",
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[Callable[[], Session]]:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        yield factory
    finally:
        # Components under test commit through their own sessions.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: Callable[[], Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(
    app: FastAPI, db_session: Session, session_factory: Callable[[], Session]
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(deps.get_session_factory, None)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def gate_config() -> GateConfig:
    return GateConfig()


@pytest.fixture()
def nonce_store(clock: FakeClock) -> InMemoryNonceStore:
    return InMemoryNonceStore(max_age_seconds=600, clock=clock)


@pytest.fixture()
def api_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(100, 900, clock=clock)


@pytest.fixture()
def deploy_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(5, 3600, clock=clock)


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def deployer() -> FakeDeployer:
    return FakeDeployer()


@pytest.fixture()
def holder() -> LocalAccount:
    """Account funded with exactly the minimum reference balance in API tests."""
    return Account.from_key(HOLDER_KEY)


@pytest.fixture()
def other_account() -> LocalAccount:
    return Account.from_key(OTHER_KEY)


@pytest.fixture()
def token_config() -> TokenConfig:
    return TokenConfig.model_validate(token_config_payload())


@pytest.fixture()
def client(
    app: FastAPI,
    clock: FakeClock,
    nonce_store: InMemoryNonceStore,
    ledger: FakeLedger,
    deployer: FakeDeployer,
    holder: LocalAccount,
    gate_config: GateConfig,
    api_limiter: RateLimiter,
    deploy_limiter: RateLimiter,
) -> Iterator[TestClient]:
    """Test client wired to fakes for the ledger, the deployer and the clock."""
    ledger.fund(holder.address, ONE_PERCENT_18)
    overrides: dict[Callable[..., Any], Callable[[], Any]] = {
        deps.get_nonce_store_dep: lambda: nonce_store,
        deps.get_authenticator: lambda: RequestAuthenticator(
            gate_config, nonce_store, clock=clock
        ),
        deps.get_ledger: lambda: ledger,
        deps.get_deployer_dep: lambda: deployer,
        deps.get_api_rate_limiter: lambda: api_limiter,
        deps.get_deploy_rate_limiter: lambda: deploy_limiter,
    }
    for dependency, override in overrides.items():
        app.dependency_overrides[dependency] = override

    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)
