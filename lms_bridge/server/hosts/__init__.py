"""Host implementations shipped with the bridge."""
