#!/usr/bin/env python3
"""
Example script to create an OpenVZ container from a template in Proxmox.

Usage: python vm_create.py <config.yaml> <node> <ostemplate> [hostname]
"""

import logging
import sys

from pve_driver import ProxmoxError, load_connection

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def main():
    if len(sys.argv) < 4:
        print("Usage: python vm_create.py <config.yaml> <node> <ostemplate> [hostname]")
        sys.exit(1)

    node = sys.argv[2]
    ostemplate = sys.argv[3]

    try:
        connection = load_connection(sys.argv[1])

        vmid = connection.get_free_vm_id()
        hostname = sys.argv[4] if len(sys.argv) > 4 else f"box-{vmid}"
        params = {'vmid': vmid, 'ostemplate': ostemplate, 'hostname': hostname}

        print(f"Creating VM {vmid} on node {node}...")
        exit_status = connection.create_vm(node, params)
        if exit_status != 'OK':
            print(f"Creation failed: {exit_status}")
            sys.exit(1)
        print(f"VM {vmid} created successfully.")

    except (ProxmoxError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
