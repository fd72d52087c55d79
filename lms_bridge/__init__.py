"""LMS Bridge: mirror Logitech Media Server players into a local device registry."""
