"""NyasaWave core — revenue distribution and competitive ranking engine."""

__version__ = "0.1.0"
