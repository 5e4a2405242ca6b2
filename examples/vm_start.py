#!/usr/bin/env python3
"""
Example script to start a VM in Proxmox.

Usage: python vm_start.py <config.yaml> <node> <vmid>
"""

import logging
import sys

from pve_driver import ProxmoxError, load_connection

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def main():
    if len(sys.argv) != 4:
        print("Usage: python vm_start.py <config.yaml> <node> <vmid>")
        sys.exit(1)

    node = sys.argv[2]
    vmid = int(sys.argv[3])

    try:
        connection = load_connection(sys.argv[1])

        state = connection.get_vm_state(node, vmid)
        if state == 'running':
            print(f"VM {vmid} is already running.")
            return
        if state == 'not_created':
            print(f"VM {vmid} does not exist on node {node}.")
            sys.exit(1)

        print(f"Starting VM {vmid} on node {node}...")
        exit_status = connection.start_vm(node, vmid)
        if exit_status != 'OK':
            print(f"Start failed: {exit_status}")
            sys.exit(1)
        print("VM started successfully.")

    except (ProxmoxError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
