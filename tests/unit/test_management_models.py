from datetime import datetime, timezone

import pytest

from rbacmgmt.core.management.models import (
    Group,
    Origin,
    Role,
    RoleAndDescription,
    RoleAndOrigin,
    User,
    UserAndMetadata,
)


# ============================================================================
# Roles
# ============================================================================

def test_role_from_data_maps_wire_names():
    role = Role.from_data({"role": "data_reader", "bucket_name": "travel"})
    assert role == Role(name="data_reader", bucket="travel")


def test_role_from_data_without_bucket():
    assert Role.from_data({"role": "admin"}).bucket is None


@pytest.mark.parametrize(
    "role,expected",
    [
        ("admin", "admin"),
        (Role(name="admin"), "admin"),
        (Role(name="data_reader", bucket="b1"), "data_reader[b1]"),
        (RoleAndOrigin(name="bucket_admin", bucket="travel"), "bucket_admin[travel]"),
    ],
)
def test_role_to_str(role, expected):
    assert Role.to_str(role) == expected


@pytest.mark.parametrize("value", ["admin", "data_reader[b1]", "query_select[travel-sample]", "odd[]"])
def test_role_canonical_form_round_trips(value):
    assert Role.to_str(Role.from_str(value)) == value


def test_role_from_str_splits_bucket():
    assert Role.from_str("data_reader[b1]") == Role(name="data_reader", bucket="b1")


def test_role_str_is_canonical():
    assert str(Role(name="data_reader", bucket="b1")) == "data_reader[b1]"


def test_role_and_description_from_data():
    role = RoleAndDescription.from_data(
        {"role": "admin", "name": "Full Admin", "description": "Can manage everything"}
    )
    assert role.name == "admin"
    assert role.bucket is None
    assert role.display_name == "Full Admin"
    assert role.description == "Can manage everything"


def test_role_and_description_accepts_desc_key():
    role = RoleAndDescription.from_data({"role": "ro_admin", "name": "Read-Only Admin", "desc": "Read only"})
    assert role.description == "Read only"


# ============================================================================
# Origins
# ============================================================================

def test_has_user_origin_when_no_origins():
    assert RoleAndOrigin(name="admin").has_user_origin() is True


@pytest.mark.parametrize(
    "origins,expected",
    [
        ([Origin(type="user")], True),
        ([Origin(type="group", name="admins")], False),
        ([Origin(type="group", name="admins"), Origin(type="user")], True),
        ([Origin(type="User")], False),
        ([Origin(type="users")], False),
    ],
)
def test_has_user_origin(origins, expected):
    assert RoleAndOrigin(name="admin", origins=origins).has_user_origin() is expected


def test_role_and_origin_from_data_without_origins_key():
    role = RoleAndOrigin.from_data({"role": "admin"})
    assert role.origins == []
    assert role.has_user_origin() is True


# ============================================================================
# Users
# ============================================================================

def test_user_from_data_keeps_only_user_origin_roles(user_record):
    user = User.from_data(user_record)
    assert user.username == "alice"
    assert user.display_name == "Alice"
    assert user.groups == ["admins"]
    assert user.roles == [
        Role(name="data_reader", bucket="travel"),
        Role(name="query_select", bucket="travel"),
    ]
    assert user.password == ""


def test_user_and_metadata_from_data(user_record):
    user = UserAndMetadata.from_data(user_record)
    assert user.domain == "local"
    assert user.external_groups == ["cn=ops"]
    assert [str(r) for r in user.effective_roles] == ["data_reader[travel]", "admin", "query_select[travel]"]
    assert len(user.effective_roles_and_origins) == 3
    assert user.effective_roles_and_origins[1].origins == [Origin(type="group", name="admins")]
    assert user.password_changed == datetime(2020, 4, 14, 9, 45, 30, tzinfo=timezone.utc)


def test_user_roles_are_user_origin_subset_of_effective_roles(user_record):
    user = UserAndMetadata.from_data(user_record)
    expected = [
        Role(name=r.name, bucket=r.bucket)
        for r in user.effective_roles_and_origins
        if r.has_user_origin()
    ]
    assert user.roles == expected


def test_user_and_metadata_tolerates_missing_optional_fields():
    user = UserAndMetadata.from_data({"id": "bob", "domain": "external"})
    assert user.display_name == ""
    assert user.groups == []
    assert user.roles == []
    assert user.effective_roles == []
    assert user.external_groups == []
    assert user.password_changed is None


def test_from_data_does_not_share_lists(user_record):
    first = UserAndMetadata.from_data(user_record)
    second = UserAndMetadata.from_data(user_record)
    first.groups.append("extra")
    assert second.groups == ["admins"]
    assert user_record["groups"] == ["admins"]


def test_user_view_drops_metadata(user_record):
    user = UserAndMetadata.from_data(user_record).user()
    assert type(user) is User
    assert user.username == "alice"
    assert [str(r) for r in user.roles] == ["data_reader[travel]", "query_select[travel]"]


def test_user_to_data_omits_username_and_roles():
    user = User(
        username="alice",
        display_name="Alice",
        groups=["admins"],
        roles=[Role(name="admin")],
        password="x",
    )
    assert User.to_data(user) == {"name": "Alice", "groups": ["admins"], "password": "x"}


def test_user_to_data_omits_empty_optionals():
    assert User.to_data(User(username="bob", display_name="Bob")) == {"name": "Bob"}


# ============================================================================
# Groups
# ============================================================================

def test_group_from_data():
    group = Group.from_data(
        {
            "id": "admins",
            "description": "Administrators",
            "roles": [{"role": "admin"}, {"role": "data_reader", "bucket_name": "b1"}],
            "ldap_group_ref": "cn=admins,dc=example",
        }
    )
    assert group.name == "admins"
    assert group.description == "Administrators"
    assert group.roles == [Role(name="admin"), Role(name="data_reader", bucket="b1")]
    assert group.ldap_group_reference == "cn=admins,dc=example"


def test_group_from_data_defaults():
    group = Group.from_data({"id": "empty"})
    assert group.description == ""
    assert group.roles == []
    assert group.ldap_group_reference is None


def test_group_to_data_accepts_mixed_roles():
    group = Group(name="g", description="d", roles=["admin", Role(name="data_reader", bucket="b1")])
    assert Group.to_data(group) == {"description": "d", "roles": ["admin", "data_reader[b1]"]}


def test_group_to_data_includes_ldap_reference_only_when_set():
    group = Group(name="g", ldap_group_reference="cn=g")
    assert Group.to_data(group) == {"description": "", "roles": [], "ldap_group_ref": "cn=g"}
    assert "ldap_group_ref" not in Group.to_data(Group(name="g"))


def test_group_to_data_none_description_and_roles():
    assert Group.to_data(Group(name="g", description=None, roles=None)) == {"description": "", "roles": []}


# ============================================================================
# Timestamps
# ============================================================================

@pytest.mark.parametrize("value", ["garbage", "2020-13-45T99:00:00Z", "14/04/2020"])
def test_unparseable_password_change_date_is_dropped(value, caplog):
    user = UserAndMetadata.from_data({"id": "a", "password_change_date": value})
    assert user.username == "a"
    assert user.password_changed is None
    assert "password_change_date" in caplog.text


def test_password_change_date_with_offset():
    user = UserAndMetadata.from_data({"id": "a", "password_change_date": "2021-01-02T03:04:05+02:00"})
    assert user.password_changed.utcoffset().total_seconds() == 7200
