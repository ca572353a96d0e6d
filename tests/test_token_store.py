from concurrent.futures import ThreadPoolExecutor

from timetrack.entities import Employee
from timetrack.services.token_store import TokenStore

ALICE = Employee(emp_number=1, user_name="alice", name="Alice")
BOB = Employee(emp_number=2, user_name="bob", name="Bob")


def test_issue_then_resolve():
    store = TokenStore()
    token = store.issue(ALICE)
    assert store.resolve(token) == ALICE


def test_revoked_token_no_longer_resolves():
    store = TokenStore()
    token = store.issue(ALICE)
    assert store.revoke(token) is True
    assert store.resolve(token) is None
    assert store.revoke(token) is False


def test_unknown_and_missing_tokens():
    store = TokenStore()
    assert store.resolve("nope") is None
    assert store.resolve(None) is None
    assert store.revoke(None) is False


def test_each_login_gets_a_new_token():
    store = TokenStore()
    first, second = store.issue(ALICE), store.issue(ALICE)
    assert first != second
    assert store.resolve(first) == store.resolve(second) == ALICE


def test_revoke_all_only_touches_one_employee():
    store = TokenStore()
    store.issue(ALICE)
    store.issue(ALICE)
    bob_token = store.issue(BOB)
    assert store.revoke_all(1) == 2
    assert len(store) == 1
    assert store.resolve(bob_token) == BOB


def test_concurrent_issue_and_revoke():
    store = TokenStore()

    def login_logout(i):
        token = store.issue(ALICE if i % 2 else BOB)
        assert store.resolve(token) is not None
        if i % 3 == 0:
            store.revoke(token)
        return token

    with ThreadPoolExecutor(max_workers=16) as pool:
        tokens = list(pool.map(login_logout, range(300)))

    assert len(set(tokens)) == 300
    assert len(store) == 300 - len(range(0, 300, 3))
