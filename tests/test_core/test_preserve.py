"""Tests for cloud-init drive preservation."""

import pytest
from unittest.mock import Mock

from ciguard.core.preserve import (
    check_and_preserve,
    is_cloud_init_volume,
    preserve_cloud_init_drives,
    preserve_if_deleting,
    resolve,
)
from ciguard.models.disk import DiskChange, SlotId, StorageChanges
from ciguard.models.vm import VmRef
from ciguard.providers.base import LiveStateError


def slot(value):
    return SlotId.parse(value)


class TestCheckAndPreserve:
    """Test single-slot classification."""

    @pytest.mark.parametrize(
        "live_config, slot_name, initial, expect_cleared",
        [
            ({"ide3": "local-lvm:vm-100-cloudinit"}, "ide3", DiskChange(delete=True), True),
            ({"ide2": "local:cloudinit"}, "ide2", DiskChange(delete=True), True),
            ({"ide0": "local-lvm:vm-100-disk-0"}, "ide0", DiskChange(delete=True), False),
            ({"ide0": "local-lvm:vm-100-disk-0"}, "ide3", DiskChange(delete=True), False),
        ],
        ids=["cloudinit-volume", "bare-cloudinit", "regular-disk", "missing-slot"],
    )
    def test_classification(self, live_config, slot_name, initial, expect_cleared):
        """Test clearing depends on the live value of the slot."""
        changes = StorageChanges()
        changes.set(slot(slot_name), initial)

        cleared = check_and_preserve(live_config, changes.handle(slot(slot_name)))

        assert cleared is expect_cleared
        if expect_cleared:
            assert changes.get(slot(slot_name)) is None
        else:
            assert changes.get(slot(slot_name)) == initial

    def test_absent_marker_stays_absent(self):
        """Test a slot with nothing queued is left alone."""
        changes = StorageChanges(ide={3: None})

        cleared = check_and_preserve({"ide3": "local:cloudinit"}, changes.handle(slot("ide3")))

        assert cleared is False
        assert changes.ide == {3: None}

    def test_absent_bus_structure(self):
        """Test a missing bus structure does not fail."""
        changes = StorageChanges()

        cleared = check_and_preserve({"ide3": "local:cloudinit"}, changes.handle(slot("ide3")))

        assert cleared is False
        assert changes.ide is None

    def test_non_string_value_is_ignored(self):
        """Test unexpected live value shapes are not cloud-init drives."""
        changes = StorageChanges(sata={0: DiskChange(delete=True)})

        cleared = check_and_preserve({"sata0": {"volume": "cloudinit"}}, changes.handle(slot("sata0")))

        assert cleared is False
        assert changes.sata[0].delete is True

    def test_update_marker_is_cleared_too(self):
        """Test any present marker on a cloud-init slot is dropped."""
        changes = StorageChanges(scsi={1: DiskChange(delete=False, volume="local:10")})

        assert check_and_preserve({"scsi1": "local:vm-1-cloudinit"}, changes.handle(slot("scsi1")))
        assert changes.scsi[1] is None


class TestPreserveIfDeleting:
    """Test the auto-placement heuristic."""

    def test_clears_pending_deletion(self):
        """Test a queued deletion of a cloud-init drive is dropped."""
        changes = StorageChanges(ide={3: DiskChange(delete=True)})

        assert preserve_if_deleting({"ide3": "local-lvm:vm-100-cloudinit"}, changes.handle(slot("ide3")))
        assert changes.ide[3] is None

    def test_keeps_non_delete_marker(self):
        """Test markers without delete intent are not touched."""
        changes = StorageChanges(ide={3: DiskChange(delete=False)})

        assert not preserve_if_deleting({"ide3": "local-lvm:vm-100-cloudinit"}, changes.handle(slot("ide3")))
        assert changes.ide[3] == DiskChange(delete=False)

    def test_absent_marker(self):
        """Test nothing happens without a marker."""
        changes = StorageChanges(ide={})

        assert not preserve_if_deleting({"ide3": "local-lvm:vm-100-cloudinit"}, changes.handle(slot("ide3")))
        assert changes.ide == {}

    def test_requires_live_cloud_init_value(self):
        """Test the slot must hold a cloud-init drive."""
        changes = StorageChanges(ide={2: DiskChange(delete=True)})

        assert not preserve_if_deleting({"ide2": "local-lvm:vm-100-disk-1"}, changes.handle(slot("ide2")))
        assert not preserve_if_deleting({}, changes.handle(slot("ide2")))
        assert changes.ide[2].delete is True


class TestResolve:
    """Test the full preservation pass."""

    def test_multi_slot_independence(self):
        """Test only the cloud-init slot loses its marker."""
        live_config = {
            "ide3": "local-lvm:vm-100-cloudinit",
            "scsi0": "local-lvm:vm-100-disk-0",
        }
        changes = StorageChanges(
            ide={i: DiskChange(delete=True) for i in range(4)},
            scsi={0: DiskChange(delete=True)},
        )

        preserved = resolve(live_config, changes, has_cloud_init_params=False)

        assert preserved == [slot("ide3")]
        assert changes.ide[3] is None
        for index in range(3):
            assert changes.ide[index] == DiskChange(delete=True)
        assert changes.scsi[0] == DiskChange(delete=True)
        assert live_config["scsi0"] == "local-lvm:vm-100-disk-0"

    def test_all_buses_are_checked(self):
        """Test cloud-init drives are found on sata and scsi too."""
        live_config = {
            "sata5": "local:vm-100-cloudinit",
            "scsi3": "ceph:vm-100-cloudinit",
        }
        changes = StorageChanges(
            sata={5: DiskChange(delete=True)},
            scsi={3: DiskChange(delete=True)},
        )

        preserved = resolve(live_config, changes, has_cloud_init_params=False)

        assert set(preserved) == {slot("sata5"), slot("scsi3")}
        assert changes.pending() == []

    def test_out_of_range_slots_untouched(self):
        """Test slots beyond the bounded ranges are never cleared."""
        live_config = {"scsi5": "local:vm-100-cloudinit", "ide4": "local:cloudinit"}
        changes = StorageChanges(
            ide={4: DiskChange(delete=True)},
            scsi={5: DiskChange(delete=True)},
        )

        preserved = resolve(live_config, changes, has_cloud_init_params=True)

        assert preserved == []
        assert changes.scsi[5].delete is True
        assert changes.ide[4].delete is True

    def test_heuristic_only_targets_ide2_and_ide3(self):
        """Test the declared-cloud-init flag has no effect on other IDE slots."""
        live_config = {"ide0": "local-lvm:vm-100-disk-0", "ide1": "local-lvm:vm-100-disk-1"}
        changes = StorageChanges(ide={0: DiskChange(delete=True), 1: DiskChange(delete=True)})

        preserved = resolve(live_config, changes, has_cloud_init_params=True)

        assert preserved == []
        assert changes.ide[0].delete is True
        assert changes.ide[1].delete is True

    def test_heuristic_activation(self):
        """Test a cloud-init drive on ide3 survives with cloud-init declared."""
        changes = StorageChanges(ide={3: DiskChange(delete=True)})

        preserved = resolve({"ide3": "local-lvm:vm-100-cloudinit"}, changes, has_cloud_init_params=True)

        assert preserved == [slot("ide3")]
        assert changes.ide[3] is None

    def test_no_bus_structures(self):
        """Test an empty change set passes through."""
        changes = StorageChanges()

        assert resolve({"ide2": "local:cloudinit"}, changes, has_cloud_init_params=True) == []
        assert changes == StorageChanges()


class TestPreserveCloudInitDrives:
    """Test the fetching entry point."""

    def test_fetches_once_and_resolves(self):
        """Test the provider is read once for the VM."""
        provider = Mock()
        provider.fetch.return_value = {"ide2": "local:cloudinit"}
        vm = VmRef(node="pve1", vmid=100)
        changes = StorageChanges(ide={2: DiskChange(delete=True)})

        preserved = preserve_cloud_init_drives(provider, vm, changes, has_cloud_init_params=False)

        provider.fetch.assert_called_once_with(vm)
        assert preserved == [slot("ide2")]
        assert changes.ide[2] is None

    def test_fetch_failure_propagates(self):
        """Test a failed fetch leaves every marker in place."""
        provider = Mock()
        error = LiveStateError("VM 100 does not exist")
        provider.fetch.side_effect = error
        changes = StorageChanges(ide={2: DiskChange(delete=True)})

        with pytest.raises(LiveStateError) as exc_info:
            preserve_cloud_init_drives(provider, VmRef(node="pve1", vmid=100), changes, True)

        assert exc_info.value is error
        assert changes.ide[2] == DiskChange(delete=True)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("local-lvm:vm-100-cloudinit,media=cdrom", True),
        ("local:cloudinit", True),
        ("local-lvm:vm-100-disk-0", False),
        (None, False),
        (42, False),
    ],
)
def test_is_cloud_init_volume(value, expected):
    """Test detection of cloud-init volume strings."""
    assert is_cloud_init_volume(value) is expected
