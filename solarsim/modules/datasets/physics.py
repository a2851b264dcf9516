"""
Photovoltaic formulas used to synthesise datasets.

P(t) = panels x panel_power x (irradiance / 1000) x system_efficiency x temp_factor
temp_factor = 1 + (T_panel - T_ref) x temp_coefficient
"""
import math

from solarsim.modules.installations.schemas import InstallationConfig

SYSTEM_EFFICIENCY = 0.85  # wiring, inverter, dust losses
TEMP_COEFFICIENT = -0.0035  # -0.35 %/°C
REFERENCE_TEMP_C = 25.0  # STC
FEED_IN_TARIFF_EUR_KWH = 0.18
CRITICAL_PANEL_TEMP_C = 65.0
SUNRISE_HOUR = 6
SUNSET_HOUR = 18


def theoretical_power_kw(config: InstallationConfig | None, irradiance_wm2: float, panel_temp_c: float) -> float:
    """Expected output in kW; 0 for an unknown installation."""
    if config is None:
        return 0.0
    temp_factor = 1 + (panel_temp_c - REFERENCE_TEMP_C) * TEMP_COEFFICIENT
    watts = config.panels * config.panel_power_w * (irradiance_wm2 / 1000) * SYSTEM_EFFICIENCY * temp_factor
    return watts / 1000


def panel_temperature_c(ambient_temp_c: float, irradiance_wm2: float) -> float:
    return ambient_temp_c + (irradiance_wm2 / 1000) * 25


def irradiance_wm2(hour: float, max_irradiance_wm2: float) -> float:
    """Half-sine daylight profile between sunrise and sunset, 0 at night."""
    if hour < SUNRISE_HOUR or hour >= SUNSET_HOUR:
        return 0.0
    return max_irradiance_wm2 * math.sin(math.pi * (hour - SUNRISE_HOUR) / 12)


def revenue_eur(energy_kwh: float) -> float:
    return energy_kwh * FEED_IN_TARIFF_EUR_KWH


def is_overheating(panel_temp_c: float) -> bool:
    return panel_temp_c >= CRITICAL_PANEL_TEMP_C
