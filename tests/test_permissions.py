import pytest

from clasificados.core.permissions import AdminPolicy


@pytest.fixture
def policy():
    return AdminPolicy(["999", " 777 "])


@pytest.mark.parametrize(
    "acting, owner, expected",
    [
        (111, 111, True),      # owner
        ("111", 111, True),    # string and int ids compare equal
        (222, 111, False),     # stranger
        (999, 111, True),      # admin
        (777, 111, True),      # admin, whitespace in config
        (None, 111, False),    # anonymous
        (222, None, False),    # ownerless listing, not admin
    ],
)
def test_can_mutate(policy, acting, owner, expected):
    assert policy.can_mutate(acting, owner) is expected


def test_admin_set_comes_from_settings(settings):
    policy = AdminPolicy.from_settings(settings)
    assert policy.is_admin(999)
    assert policy.is_admin("888")
    assert not policy.is_admin(111)
    assert not policy.is_admin("")


def test_empty_admin_set_has_no_admins():
    assert not AdminPolicy().is_admin(999)
