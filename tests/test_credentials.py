import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import pytest

from kibitzer.engine.credentials import CredentialPool
from kibitzer.exceptions import NoCredentialsError


def test_rotate_wraps_around():
    pool = CredentialPool(["k1", "k2", "k3"])
    assert pool.current() == "k1"
    assert pool.rotate() and pool.current() == "k2"
    assert pool.rotate() and pool.current() == "k3"
    assert pool.rotate() and pool.current() == "k1"
    assert len(pool) == 3


def test_single_key_rotation_is_noop():
    pool = CredentialPool(["only"])
    assert pool.rotate() is False
    assert pool.index == 0
    assert pool.current() == "only"


def test_empty_pool_raises():
    pool = CredentialPool([])
    assert pool.rotate() is False
    with pytest.raises(NoCredentialsError):
        pool.current()


def test_from_env_skips_missing_keys():
    env = {"A": "key-a", "B": "", "C": "  key-c "}
    pool = CredentialPool.from_env(["A", "B", "C", "D"], environ=env)
    assert len(pool) == 2
    assert pool.current() == "key-a"
    pool.rotate()
    assert pool.current() == "key-c"
