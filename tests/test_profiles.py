"""Tests for ProfileStore and ProfileLayer."""

from unittest.mock import patch

import pytest

from helpers import key_state, request
from keylight.events import ProfileActivated
from keylight.exceptions import PersistenceError, ProfileNotFoundError
from keylight.layouts import keys_for_layout
from keylight.model_manager import PydanticPersistence
from keylight.models import NULL_PROFILE, KeyState, Profile
from keylight.profiles import DEFAULT_PROFILE_ID, ProfileLayer, ProfileStore, build_default_profile

BASELINE = key_state("2040FF")


def make_profile(profile_id="p1", name="Gaming", keys=("a",), color="FF0000"):
    return Profile(
        id=profile_id,
        name=name,
        default_animations={"en-US": [request(key, color) for key in keys]},
    )


@pytest.fixture
def store(temp_dir):
    store = ProfileStore(temp_dir / "profiles")
    store.load()
    return store


@pytest.fixture
def layer(store, connected_reconciler, events):
    layer = ProfileLayer(store, connected_reconciler, events)
    layer.attach()
    return layer


class TestProfileStore:
    """Test the on-disk profile catalogue."""

    @pytest.mark.unit
    def test_default_profile_is_built_in(self, store):
        """Test the built-in default covers every en-US key."""
        default = store.get(DEFAULT_PROFILE_ID)
        assert default == build_default_profile()
        assert default.key_count == len(keys_for_layout("en-US"))
        assert all(r.data == BASELINE for r in default.defaults_for_layout("en-US"))

    @pytest.mark.unit
    def test_save_and_reload(self, store, temp_dir):
        """Test that saved profiles survive a reload."""
        profile = make_profile()
        store.save(profile)
        assert (temp_dir / "profiles" / "p1.json").exists()

        reloaded = ProfileStore(temp_dir / "profiles")
        reloaded.load()
        assert reloaded.get("p1") == profile

    @pytest.mark.unit
    def test_list_profiles_default_first(self, store):
        """Test listing order."""
        store.save(make_profile("p2", name="work"))
        store.save(make_profile("p1", name="Gaming"))
        assert [p.id for p in store.list_profiles()] == [DEFAULT_PROFILE_ID, "p1", "p2"]

    @pytest.mark.unit
    def test_get_unknown(self, store):
        """Test that unknown ids raise ProfileNotFoundError."""
        with pytest.raises(ProfileNotFoundError):
            store.get("missing")

    @pytest.mark.unit
    def test_default_cannot_be_saved_or_deleted(self, store):
        """Test that the built-in profile is protected."""
        with pytest.raises(PersistenceError):
            store.save(make_profile(DEFAULT_PROFILE_ID))
        with pytest.raises(PersistenceError):
            store.delete(DEFAULT_PROFILE_ID)

    @pytest.mark.unit
    def test_delete(self, store, temp_dir):
        """Test deleting removes the file and the catalogue entry."""
        store.save(make_profile())
        deleted = store.delete("p1")

        assert deleted.id == "p1"
        assert not (temp_dir / "profiles" / "p1.json").exists()
        with pytest.raises(ProfileNotFoundError):
            store.get("p1")
        with pytest.raises(ProfileNotFoundError):
            store.delete("p1")

    @pytest.mark.unit
    def test_failed_write_leaves_catalogue_unchanged(self, store):
        """Test that a persistence failure propagates and nothing is added."""
        with patch.object(PydanticPersistence, "save_json", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                store.save(make_profile())
        assert [p.id for p in store.list_profiles()] == [DEFAULT_PROFILE_ID]

    @pytest.mark.unit
    def test_corrupt_files_are_skipped(self, store, temp_dir):
        """Test that one bad document does not block the others."""
        store.save(make_profile())
        (temp_dir / "profiles" / "broken.json").write_text("{not json")
        (temp_dir / "profiles" / "default.json").write_text(make_profile(DEFAULT_PROFILE_ID).model_dump_json())

        store.load()

        assert [p.id for p in store.list_profiles()] == [DEFAULT_PROFILE_ID, "p1"]
        assert store.get(DEFAULT_PROFILE_ID) == build_default_profile()

    @pytest.mark.unit
    def test_missing_directory(self, temp_dir):
        """Test loading from a directory that does not exist yet."""
        store = ProfileStore(temp_dir / "nowhere")
        store.load()
        assert store.list_profiles() == [build_default_profile()]


class TestProfileLayer:
    """Test the baseline layer."""

    @pytest.mark.unit
    def test_activate_paints_baseline(self, layer, keyboard):
        """Test that activation redraws every key of the layout."""
        layer.activate()
        assert set(keyboard.visible) == set(keys_for_layout("en-US"))
        assert keyboard.visible["a"] == BASELINE

    @pytest.mark.unit
    def test_activate_publishes(self, layer, published):
        """Test ProfileActivated publishing."""
        layer.activate()
        assert published == [ProfileActivated(DEFAULT_PROFILE_ID)]

    @pytest.mark.unit
    def test_switch_profile(self, layer, store, keyboard, red):
        """Test switching to a stored profile turns off keys it does not mention."""
        layer.activate()
        assert keyboard.visible["b"] == BASELINE

        store.save(make_profile(keys=("a",)))
        active = layer.activate("p1")

        assert active.id == "p1"
        assert layer.profile_id == "p1"
        assert keyboard.visible["a"] == red
        assert keyboard.visible["b"] == KeyState.off()

    @pytest.mark.unit
    def test_missing_profile_falls_back_to_off(self, layer):
        """Test that an unknown active profile yields the all-off profile."""
        assert layer.activate("missing") is NULL_PROFILE
        requests = layer.tick()
        assert [r.key for r in requests] == list(keys_for_layout("en-US"))
        assert all(r.data == KeyState.off() for r in requests)

    @pytest.mark.unit
    def test_missing_profile_darkens_keyboard(self, layer, keyboard):
        """Test that falling back to the all-off profile clears the previous colours."""
        layer.activate()
        assert keyboard.visible["a"] == BASELINE

        layer.activate("missing")

        assert all(state == KeyState.off() for state in keyboard.visible.values())

    @pytest.mark.unit
    def test_extra_profile_keys_follow_layout_keys(self, layer, store, red):
        """Test that keys outside the layout are still served after the layout keys."""
        store.save(make_profile(keys=("a", "macro1")))
        layer.activate("p1")
        requests = layer.tick()
        assert requests[-1].key == "macro1"
        assert requests[-1].data == red
        assert len(requests) == len(keys_for_layout("en-US")) + 1

    @pytest.mark.unit
    def test_default_for(self, layer, store, red):
        """Test per-key defaults, with unmentioned keys off."""
        store.save(make_profile(keys=("a",)))
        layer.activate("p1")
        defaults = {r.key: r.data for r in layer.default_for(["a", "b"])}
        assert defaults == {"a": red, "b": KeyState.off()}

    @pytest.mark.unit
    def test_unknown_layout_has_no_baseline(self, layer):
        """Test a layout the profile does not describe."""
        layer.set_layout("de-DE")
        assert layer.layout == "de-DE"
        assert layer.tick() == []

    @pytest.mark.unit
    def test_create_profile_snapshots_wanted_state(self, layer, connected_reconciler, store, green):
        """Test that a created profile captures what every key shows."""
        layer.activate()
        connected_reconciler.process_key_changes([request("a", "00FF00")])

        profile = layer.create_profile("Snapshot", description="test")

        assert len(profile.id) == 32
        assert store.get(profile.id) == profile
        states = {r.key: r.data for r in profile.defaults_for_layout("en-US")}
        assert states["a"] == green
        assert states["b"] == BASELINE

    @pytest.mark.unit
    def test_create_profile_failure_propagates(self, layer, store):
        """Test that a failed write reaches the caller."""
        with patch.object(PydanticPersistence, "save_json", side_effect=PersistenceError("read-only")):
            with pytest.raises(PersistenceError):
                layer.create_profile("Nope")
        assert len(store.list_profiles()) == 1

    @pytest.mark.unit
    def test_delete_active_profile_turns_baseline_off(self, layer, store, keyboard, published, red):
        """Test deleting the profile in use."""
        store.save(make_profile(keys=("a", "b")))
        layer.activate("p1")
        assert keyboard.visible["b"] == red

        layer.delete_profile("p1")

        assert layer.get_active_profile() is NULL_PROFILE
        assert published[-1] == ProfileActivated("p1")
        assert keyboard.visible["a"] == KeyState.off()
        assert keyboard.visible["b"] == KeyState.off()

    @pytest.mark.unit
    def test_delete_default_fails(self, layer):
        """Test that the built-in profile cannot be deleted."""
        with pytest.raises(PersistenceError):
            layer.delete_profile(DEFAULT_PROFILE_ID)
