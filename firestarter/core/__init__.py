"""Core building blocks of the firestarter client."""
