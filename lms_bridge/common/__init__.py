"""Models and helpers shared by the bridge and its hosts."""
