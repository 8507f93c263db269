"""School information portal: users, classes, grades, attendance and news."""

__version__ = "1.0.0"
