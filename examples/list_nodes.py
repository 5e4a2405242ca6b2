#!/usr/bin/env python3
"""
Example script to list the nodes of a Proxmox cluster and the next free VM ID.

Usage: python list_nodes.py <config.yaml>
"""

import logging
import sys

from pve_driver import ProxmoxError, load_connection

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


def main():
    if len(sys.argv) != 2:
        print("Usage: python list_nodes.py <config.yaml>")
        sys.exit(1)

    try:
        connection = load_connection(sys.argv[1])

        print("Nodes in cluster:")
        print("-" * 50)
        for node in connection.get_node_list():
            print(node)
        print(f"Next free VM ID: {connection.get_free_vm_id()}")

    except (ProxmoxError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
