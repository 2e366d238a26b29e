"""Tests for ssh_launcher/profile.py — Profile and ProfileStore."""

import json
import stat
from unittest.mock import patch

import pytest

from ssh_launcher.profile import DuplicateProfileError, Profile, ProfileStore


class TestProfile:

    def test_label_and_target(self, web_profile):
        assert web_profile.label == "web (IP: 10.0.0.1, User: admin)"
        assert web_profile.target == "admin@10.0.0.1"
        assert str(web_profile) == web_profile.label

    def test_to_dict_uses_ip_key(self, web_profile):
        assert web_profile.to_dict() == {"name": "web", "ip": "10.0.0.1", "user": "admin"}

    def test_from_dict(self):
        profile = Profile.from_dict({"name": "db", "ip": "10.0.0.2", "user": "postgres"})
        assert profile == Profile(name="db", address="10.0.0.2", user="postgres")

    def test_from_dict_missing_field(self):
        with pytest.raises(ValueError, match="ip"):
            Profile.from_dict({"name": "db", "user": "postgres"})

    @pytest.mark.parametrize("field,value", [
        ("user", "-oProxyCommand=touch /tmp/pwned"),
        ("address", "-oProxyCommand=touch /tmp/pwned"),
    ])
    def test_option_like_values_rejected(self, field, value):
        fields = {"name": "web", "address": "10.0.0.1", "user": "admin", field: value}
        with pytest.raises(ValueError, match="-"):
            Profile(**fields)

    def test_option_like_value_in_file_rejected(self):
        with pytest.raises(ValueError):
            Profile.from_dict({"name": "web", "ip": "10.0.0.1", "user": "-oProxyCommand=x"})

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValueError):
            Profile.from_dict(["db", "10.0.0.2", "postgres"])


class TestProfileStoreLoad:

    def test_first_load_writes_template(self, profiles_file):
        s = ProfileStore(profiles_file)
        assert s.is_first_run()

        assert s.load() is True
        assert not s.is_first_run()
        assert s.profile_count == 1

        data = json.loads(profiles_file.read_text(encoding="utf-8"))
        assert data == [{"name": "Template Server 1", "ip": "192.168.1.100", "user": "template_user"}]

    def test_saved_file_is_owner_only(self, store, profiles_file):
        mode = stat.S_IMODE(profiles_file.stat().st_mode)
        assert mode == 0o600

    def test_load_existing_file(self, profiles_file):
        profiles_file.parent.mkdir(parents=True)
        profiles_file.write_text(json.dumps([
            {"name": "web", "ip": "10.0.0.1", "user": "admin"},
            {"name": "db", "ip": "10.0.0.2", "user": "postgres"},
        ]), encoding="utf-8")

        s = ProfileStore(profiles_file)
        assert s.load() is False
        assert [p.name for p in s.list_profiles()] == ["web", "db"]

    def test_load_skips_repeated_records(self, profiles_file):
        record = {"name": "web", "ip": "10.0.0.1", "user": "admin"}
        profiles_file.parent.mkdir(parents=True)
        profiles_file.write_text(json.dumps([
            record,
            {"name": "db", "ip": "10.0.0.2", "user": "postgres"},
            record,
        ]), encoding="utf-8")

        s = ProfileStore(profiles_file)
        s.load()

        assert [p.name for p in s.list_profiles()] == ["web", "db"]
        assert s.skipped_duplicates == 1

        # 남은 레코드는 그대로 수정 가능
        s.update(0, name="web")
        assert s.get(0).name == "web"

    def test_load_without_duplicates_reports_zero(self, store, profiles_file):
        s = ProfileStore(profiles_file)
        s.load()
        assert s.skipped_duplicates == 0

    def test_load_corrupt_json(self, profiles_file):
        profiles_file.parent.mkdir(parents=True)
        profiles_file.write_text("[{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            ProfileStore(profiles_file).load()

    def test_load_rejects_non_list(self, profiles_file):
        profiles_file.parent.mkdir(parents=True)
        profiles_file.write_text(json.dumps({"servers": []}), encoding="utf-8")

        with pytest.raises(ValueError, match="리스트"):
            ProfileStore(profiles_file).load()

    def test_load_rejects_incomplete_record(self, profiles_file):
        profiles_file.parent.mkdir(parents=True)
        profiles_file.write_text(json.dumps([{"name": "web"}]), encoding="utf-8")

        with pytest.raises(ValueError):
            ProfileStore(profiles_file).load()


class TestProfileStoreMutations:

    def _reload(self, profiles_file):
        s = ProfileStore(profiles_file)
        s.load()
        return s

    def test_add_persists(self, store, profiles_file, web_profile):
        store.add(web_profile)

        reloaded = self._reload(profiles_file)
        assert reloaded.profile_count == 2
        assert reloaded.get(1) == web_profile

    def test_add_duplicate_label_rejected(self, store, web_profile):
        store.add(web_profile)

        with pytest.raises(DuplicateProfileError):
            store.add(Profile(name="web", address="10.0.0.1", user="admin"))
        assert store.profile_count == 2

    def test_same_name_different_user_allowed(self, store, web_profile):
        store.add(web_profile)
        store.add(Profile(name="web", address="10.0.0.1", user="root"))
        assert store.profile_count == 3

    def test_update_persists(self, store, profiles_file):
        updated = store.update(0, name="renamed", user="root")

        assert updated.name == "renamed"
        assert updated.address == "192.168.1.100"
        assert self._reload(profiles_file).get(0).user == "root"

    def test_update_to_duplicate_label_leaves_profile_unchanged(self, store, web_profile):
        store.add(web_profile)

        with pytest.raises(DuplicateProfileError):
            store.update(0, name="web", address="10.0.0.1", user="admin")
        assert store.get(0).name == "Template Server 1"

    def test_update_same_values_is_not_a_duplicate(self, store):
        profile = store.get(0)
        store.update(0, name=profile.name)
        assert store.get(0).name == "Template Server 1"

    def test_update_unknown_field(self, store):
        with pytest.raises(ValueError, match="port"):
            store.update(0, port=2222)

    def test_update_out_of_range(self, store):
        with pytest.raises(IndexError):
            store.update(5, name="x")

    def test_remove_persists(self, store, profiles_file, web_profile):
        store.add(web_profile)

        removed = store.remove(0)

        assert removed.name == "Template Server 1"
        reloaded = self._reload(profiles_file)
        assert reloaded.list_profiles() == [web_profile]

    def test_remove_out_of_range(self, store):
        with pytest.raises(IndexError):
            store.remove(-1)

    def test_find_by_label(self, store, web_profile):
        store.add(web_profile)
        assert store.find("web (IP: 10.0.0.1, User: admin)") is store.get(1)
        assert store.find("missing") is None

    def test_list_profiles_is_a_copy(self, store):
        store.list_profiles().clear()
        assert store.profile_count == 1


class TestImportProfiles:

    def test_skips_existing_and_repeated(self, store, web_profile):
        store.add(web_profile)
        incoming = [
            Profile(name="web", address="10.0.0.1", user="admin"),
            Profile(name="db", address="10.0.0.2", user="postgres"),
            Profile(name="db", address="10.0.0.2", user="postgres"),
        ]

        added = store.import_profiles(incoming)

        assert [p.name for p in added] == ["db"]
        assert store.profile_count == 3

    def test_nothing_new_does_not_save(self, store):
        with patch.object(store, "save") as mock_save:
            assert store.import_profiles([store.get(0)]) == []
        mock_save.assert_not_called()

    def test_saves_once(self, store):
        incoming = [
            Profile(name="a", address="10.0.0.3", user="u"),
            Profile(name="b", address="10.0.0.4", user="u"),
        ]
        with patch.object(store, "save") as mock_save:
            store.import_profiles(incoming)
        mock_save.assert_called_once()


class TestSaveFailure:
    """저장 실패 시 메모리 목록이 파일과 어긋나지 않아야 함"""

    @pytest.fixture
    def failing_save(self, store):
        with patch.object(store, "save", side_effect=OSError("read-only file system")):
            yield

    def test_add_is_rolled_back(self, store, web_profile, failing_save):
        with pytest.raises(OSError):
            store.add(web_profile)

        assert store.profile_count == 1
        assert store.find(web_profile.label) is None

    def test_update_is_rolled_back(self, store, failing_save):
        with pytest.raises(OSError):
            store.update(0, name="renamed", user="root")

        profile = store.get(0)
        assert profile.name == "Template Server 1"
        assert profile.user == "template_user"

    def test_remove_is_rolled_back(self, store, failing_save):
        original = store.get(0)

        with pytest.raises(OSError):
            store.remove(0)

        assert store.list_profiles() == [original]

    def test_import_is_rolled_back(self, store, failing_save):
        with pytest.raises(OSError):
            store.import_profiles([Profile(name="db", address="10.0.0.2", user="postgres")])

        assert store.profile_count == 1

    def test_memory_matches_disk_after_failure(self, store, profiles_file, web_profile):
        with patch.object(store, "save", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.add(web_profile)

        on_disk = json.loads(profiles_file.read_text(encoding="utf-8"))
        assert len(on_disk) == store.profile_count
