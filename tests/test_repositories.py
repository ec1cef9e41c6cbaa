from elgg.core.validation import is_email_address, is_http_url, sanitise_filepath
from elgg.db.repositories import (
    ConfigValueRepository,
    NotificationSettingRepository,
    RelationshipRepository,
    SiteRepository,
    UserRepository,
)


def _user(db_session, username: str, admin: bool = False):
    return UserRepository(db_session).create(
        username=username,
        name=username.title(),
        password_hash="x",
        admin=admin,
    )


def test_user_repository_lookups(db_session):
    _user(db_session, "alice", admin=True)
    _user(db_session, "bobby")

    repo = UserRepository(db_session)
    assert repo.get_by_username("bobby").name == "Bobby"
    assert repo.get_by_username("nobody") is None
    assert repo.count_admins() == 1
    assert len(repo.list()) == 2


def test_site_repository_first(db_session):
    repo = SiteRepository(db_session)
    assert repo.first() is None
    first = repo.create(name="One", url="http://one.example.org/")
    repo.create(name="Two", url="http://two.example.org/")
    assert repo.first().guid == first.guid


def test_relationship_find_and_delete(db_session):
    alice = _user(db_session, "alice")
    bob = _user(db_session, "bobby")

    repo = RelationshipRepository(db_session)
    rel = repo.create(guid_one=alice.guid, relationship="friend", guid_two=bob.guid)
    assert repo.find(alice.guid, "friend", bob.guid).id == rel.id
    assert repo.find(bob.guid, "friend", alice.guid) is None

    repo.delete(rel)
    assert repo.find(alice.guid, "friend", bob.guid) is None


def test_notification_setting_repository(db_session):
    alice = _user(db_session, "alice")
    repo = NotificationSettingRepository(db_session)
    repo.create(user_guid=alice.guid, method="email", enabled=True)
    repo.create(user_guid=alice.guid, method="site", enabled=False)

    assert [row.method for row in repo.for_user(alice.guid)] == ["email", "site"]
    repo.update(repo.find(alice.guid, "site"), enabled=True)
    assert repo.find(alice.guid, "site").enabled is True


def test_config_value_stores_json(db_session):
    repo = ConfigValueRepository(db_session)
    repo.create(name="plugins", value={"order": ["blog", "groups"]})
    assert repo.get("plugins").value == {"order": ["blog", "groups"]}


def test_validation_helpers():
    assert is_email_address("admin@example.org")
    assert not is_email_address("admin@")
    assert not is_email_address(None)
    assert is_http_url("https://example.org/path")
    assert not is_http_url("example.org")
    assert sanitise_filepath("C:\\elgg\\data") == "C:/elgg/data/"
    assert sanitise_filepath("/var/data//") == "/var/data/"
