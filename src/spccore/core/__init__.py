"""Engine core: calculations, settings and logging setup."""
