"""Timecard package.

Small-business attendance tracking organised by feature modules (staff,
attendance, work settings, reports, ...) with a thin Flask JSON layer over
service/repository layers.
"""
