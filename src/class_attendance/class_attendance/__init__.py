"""Class Attendance package.

This package is organized by feature modules (attendance, analytics, sync)
with a thin Flask controller layer on top of service/repository layers.
"""
