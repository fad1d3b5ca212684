"""Engine services, one package per game concern."""
