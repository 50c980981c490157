"""WLAN Auto-Assignment Module.

This module creates wireless networks on a Campus controller and pushes
them to the right device profiles:
- Discover profiles reachable from the selected sites
- Narrow each site's profiles with a deployment policy
- Assign the new WLAN in bounded concurrent batches
- Sync assigned profiles out to their access points

Architecture: Clean Architecture with Hexagonal (Ports & Adapters)
"""
