"""Tenant Attendance package.

Multi-tenant attendance tracking on top of a shared document store.
Organized by feature modules (tenants, users, invites, attendance, ...)
with a thin Flask controller layer over service/repository layers.
"""
