import pytest

from pve_driver.allocator import find_free_vm_id, used_vm_ids
from pve_driver.exceptions import NoVmIdAvailable


class TestAllocator:

    def test_used_vm_ids(self):
        resources = [{'type': 'qemu', 'vmid': 100}, {'type': 'lxc', 'vmid': '101'}, {'type': 'node'}]
        assert used_vm_ids(resources) == {100, 101}

    def test_used_vm_ids_of_empty_listing(self):
        assert used_vm_ids(None) == set()

    def test_lowest_free_id(self):
        assert find_free_vm_id({900, 901, 903}, range(900, 1000)) == 902

    def test_ids_outside_the_range_are_ignored(self):
        assert find_free_vm_id({1, 2, 1000}, range(900, 1000)) == 900

    def test_exhausted_range(self):
        with pytest.raises(NoVmIdAvailable, match="between 3 and 4") as excinfo:
            find_free_vm_id({3, 4}, range(3, 5))
        assert excinfo.value.vm_id_range == range(3, 5)
