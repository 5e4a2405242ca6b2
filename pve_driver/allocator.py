from .exceptions import NoVmIdAvailable


def used_vm_ids(resources):
    """Collect the VM IDs of a cluster resource listing."""
    return {int(r['vmid']) for r in resources or [] if r.get('vmid') is not None}


def find_free_vm_id(used_ids, vm_id_range):
    """
    Return the lowest ID of vm_id_range that is not in used_ids.

    :param used_ids: VM IDs currently taken anywhere in the cluster
    :param vm_id_range: Candidate IDs, scanned in ascending order
    :return: The smallest free VM ID
    """
    for vm_id in sorted(vm_id_range):
        if vm_id not in used_ids:
            return vm_id
    raise NoVmIdAvailable(
        f"No free VM ID between {vm_id_range[0]} and {vm_id_range[-1]}",
        vm_id_range=vm_id_range,
    )
