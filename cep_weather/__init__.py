"""cep-weather: CEP to temperature lookup across two traced services.

The input service validates a CEP and forwards it to the orchestration
service, which resolves the city (ViaCEP) and its current temperature
(WeatherAPI).
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
