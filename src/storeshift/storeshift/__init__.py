"""Storeshift package.

Retail-store attendance backend organized by feature modules (attendance,
approvals, notifications, realtime) with thin Flask controllers over
service/repository layers and a pluggable document store.
"""
