"""School attendance package.

Organized by feature modules (configurations, timetable, attendance, leave, ...)
with a thin Flask controller layer over service/repository layers.
"""
