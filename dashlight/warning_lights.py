"""
Static description table for dashboard warning lights.

Keyed by vocabulary label. Unknown labels get a default record in the
"warning" tier so a result is never dropped just because it has no entry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List


class Urgency(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class WarningLightInfo:
    id: str
    display_name: str
    urgency: Urgency
    short_description: str
    what_it_means: str
    what_to_do: str
    symbol_color: str

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["urgency"] = self.urgency.value
        return payload


ALL_LIGHTS: List[WarningLightInfo] = [
    WarningLightInfo(
        id="battery",
        display_name="Battery / Charging",
        urgency=Urgency.CRITICAL,
        short_description="Charging system malfunction.",
        what_it_means="The alternator is not charging the battery. The vehicle is running on stored battery power, which will deplete within 30-60 minutes.",
        what_to_do="Turn off non-essential electronics. Drive to the nearest safe location. Do not turn off the engine, as it may not restart.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="oil_pressure",
        display_name="Oil Pressure",
        urgency=Urgency.CRITICAL,
        short_description="Low oil pressure detected.",
        what_it_means="Engine oil pressure has dropped below safe levels. Running without adequate oil pressure causes severe engine damage within minutes.",
        what_to_do="Pull over and stop the engine immediately. Check oil level with the dipstick. If oil level is fine, do not drive. Call for a tow.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="temperature",
        display_name="Engine Temperature",
        urgency=Urgency.CRITICAL,
        short_description="Engine is overheating.",
        what_it_means="Coolant temperature has exceeded safe limits. Causes include low coolant, failed thermostat, or radiator fan failure.",
        what_to_do="Pull over safely. Turn off A/C and turn heater to max. Let engine cool 15+ minutes. Do not open radiator cap while hot.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="brake",
        display_name="Brake System",
        urgency=Urgency.CRITICAL,
        short_description="Brake system warning.",
        what_it_means="Could indicate low brake fluid, worn pads, or hydraulic fault. May also light up if parking brake is partially engaged.",
        what_to_do="Check parking brake first. If released, check brake fluid. If pedal feels soft, avoid driving and call for service.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="airbag",
        display_name="Airbag / SRS",
        urgency=Urgency.CRITICAL,
        short_description="Supplemental Restraint System fault.",
        what_it_means="The airbag system has a malfunction. Airbags may not deploy in a collision, or could deploy unexpectedly.",
        what_to_do="Get checked as soon as possible. Vehicle is safe to drive, but crash protection is compromised.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="transmission",
        display_name="Transmission",
        urgency=Urgency.CRITICAL,
        short_description="Transmission malfunction detected.",
        what_it_means="The transmission control module detected a fault. The vehicle may enter 'limp mode' (limited to one gear).",
        what_to_do="Reduce speed. If in limp mode, drive directly to a shop. If you smell burning, pull over and call a tow.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="check_engine",
        display_name="Check Engine",
        urgency=Urgency.WARNING,
        short_description="Engine or emissions system fault.",
        what_it_means="The ECU detected a fault. Could range from a loose gas cap to a serious misfire.",
        what_to_do="Steady light: schedule a diagnostic scan soon. Flashing: reduce speed immediately, avoid hard acceleration.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="abs",
        display_name="ABS",
        urgency=Urgency.WARNING,
        short_description="Anti-lock braking system fault.",
        what_it_means="ABS is disabled. Normal brakes work, but anti-lock function is unavailable.",
        what_to_do="Drive cautiously in wet/icy conditions. Avoid hard braking. If both ABS and brake lights are on, stop immediately.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="seatbelt",
        display_name="Seatbelt",
        urgency=Urgency.WARNING,
        short_description="Seatbelt not fastened.",
        what_it_means="Driver or passenger seatbelt not buckled, or cargo on seat triggering sensor.",
        what_to_do="Fasten all seatbelts. Move cargo to trunk if triggering sensor.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="tire_pressure",
        display_name="Tire Pressure (TPMS)",
        urgency=Urgency.WARNING,
        short_description="Tire pressure low or uneven.",
        what_it_means="One or more tires significantly below recommended pressure. Increases stopping distance and reduces fuel economy.",
        what_to_do="Check all tires with a gauge. Inflate to pressure on door jamb sticker. If light persists, check for slow leak.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="fuel",
        display_name="Low Fuel",
        urgency=Urgency.WARNING,
        short_description="Fuel level is low.",
        what_it_means="Approximately 1-2 gallons remaining (~30-50 miles).",
        what_to_do="Refuel at the next available station.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="door_ajar",
        display_name="Door Ajar",
        urgency=Urgency.WARNING,
        short_description="A door, hood, or trunk is not fully closed.",
        what_it_means="One or more doors or the hood/trunk is not properly latched.",
        what_to_do="Stop safely, check all doors, hood, and trunk. Close firmly until latch clicks.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="traction_control",
        display_name="Traction Control",
        urgency=Urgency.WARNING,
        short_description="Traction control active or disabled.",
        what_it_means="Flashing: actively preventing wheel spin. Steady: system off or faulty.",
        what_to_do="Flashing: reduce speed. Steady and you didn't disable it: schedule diagnostic.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="power_steering",
        display_name="Power Steering",
        urgency=Urgency.WARNING,
        short_description="Power steering assist reduced or lost.",
        what_it_means="Steering will be significantly harder to turn, especially at low speeds.",
        what_to_do="Drive slowly, avoid tight maneuvers. Get repaired promptly.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="parking_brake",
        display_name="Parking Brake",
        urgency=Urgency.WARNING,
        short_description="Parking brake is engaged.",
        what_it_means="Driving with it on causes brake overheating and damage.",
        what_to_do="Fully release parking brake. If light stays on, check brake fluid.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="esp",
        display_name="Electronic Stability",
        urgency=Urgency.WARNING,
        short_description="Stability control active or disabled.",
        what_it_means="Flashing: correcting a skid. Steady with 'OFF': manually disabled or fault.",
        what_to_do="Flashing: slow down. If you didn't disable it, schedule a check.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="master_warning",
        display_name="Master Warning",
        urgency=Urgency.WARNING,
        short_description="General warning requiring attention.",
        what_it_means="A catch-all warning. Usually accompanied by a message on the dashboard display indicating the specific issue.",
        what_to_do="Check your dashboard display for an accompanying message. Address the specific issue indicated.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="key_warning",
        display_name="Key / Immobilizer",
        urgency=Urgency.WARNING,
        short_description="Key fob not detected or low battery.",
        what_it_means="The vehicle cannot detect the key fob, or the fob battery is low.",
        what_to_do="Bring key fob closer to the start button. Replace fob battery (usually CR2032).",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="hood_trunk_open",
        display_name="Hood / Trunk Open",
        urgency=Urgency.WARNING,
        short_description="Hood or trunk is not properly closed.",
        what_it_means="The hood or trunk latch is not fully engaged.",
        what_to_do="Stop safely. Close hood/trunk firmly. If light persists, latch sensor may be faulty.",
        symbol_color="red",
    ),
    WarningLightInfo(
        id="service_engine",
        display_name="Service / Maintenance",
        urgency=Urgency.WARNING,
        short_description="Scheduled maintenance is due.",
        what_it_means="The vehicle's maintenance timer has triggered. Usually for oil change, filter, or inspection.",
        what_to_do="Schedule routine maintenance. This can often be reset after service.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="dpf_warning",
        display_name="DPF Warning",
        urgency=Urgency.WARNING,
        short_description="Diesel particulate filter needs regeneration.",
        what_it_means="The DPF is clogged with soot. Common in diesel vehicles driven mainly in city traffic.",
        what_to_do="Drive at highway speed (60+ mph) for 15-20 minutes to allow passive regeneration. If light persists, see a dealer.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="glow_plug",
        display_name="Glow Plug",
        urgency=Urgency.WARNING,
        short_description="Diesel glow plug warming or faulty.",
        what_it_means="On diesel vehicles, glow plugs preheat the combustion chamber. If the light stays on after starting, a plug may be faulty.",
        what_to_do="Wait for light to turn off before starting (cold weather). If it stays on while driving, schedule a check.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="lane_departure",
        display_name="Lane Departure",
        urgency=Urgency.WARNING,
        short_description="Lane departure warning active.",
        what_it_means="The camera detected the vehicle drifting out of its lane without a turn signal.",
        what_to_do="Steer back into your lane. If fatigued, take a break.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="blind_spot",
        display_name="Blind Spot Monitor",
        urgency=Urgency.WARNING,
        short_description="Vehicle detected in blind spot.",
        what_it_means="A vehicle is in your blind spot area. Do not change lanes.",
        what_to_do="Wait for the indicator to clear before changing lanes. Check mirrors.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="frost_warning",
        display_name="Frost Warning",
        urgency=Urgency.WARNING,
        short_description="Outside temperature near freezing.",
        what_it_means="Road surface may be icy. Typically activates below 37°F (3°C).",
        what_to_do="Drive cautiously. Increase following distance. Avoid sudden braking or steering.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="washer_fluid",
        display_name="Washer Fluid Low",
        urgency=Urgency.INFO,
        short_description="Windshield washer fluid is low.",
        what_it_means="Washer fluid reservoir needs refilling.",
        what_to_do="Refill with appropriate fluid for your climate.",
        symbol_color="orange",
    ),
    WarningLightInfo(
        id="high_beam",
        display_name="High Beam",
        urgency=Urgency.INFO,
        short_description="High beam headlights are on.",
        what_it_means="Normal indicator. High beams active.",
        what_to_do="Switch to low beams when approaching other vehicles or in fog.",
        symbol_color="blue",
    ),
    WarningLightInfo(
        id="low_beam",
        display_name="Low Beam",
        urgency=Urgency.INFO,
        short_description="Low beam headlights are on.",
        what_it_means="Normal status indicator.",
        what_to_do="No action needed.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="turn_signal",
        display_name="Turn Signal",
        urgency=Urgency.INFO,
        short_description="Turn signal active.",
        what_it_means="Normal operation. Rapid flashing usually means a bulb is burned out.",
        what_to_do="No action unless flashing rapidly, then replace bulb.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="fog_light",
        display_name="Fog Light",
        urgency=Urgency.INFO,
        short_description="Fog lights are on.",
        what_it_means="Front or rear fog lights active.",
        what_to_do="Turn off when visibility improves. Using fog lights in clear conditions may be illegal.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="cruise_control",
        display_name="Cruise Control",
        urgency=Urgency.INFO,
        short_description="Cruise control is active.",
        what_it_means="The vehicle is maintaining a set speed automatically.",
        what_to_do="Tap brake or press cancel to deactivate.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="adaptive_cruise",
        display_name="Adaptive Cruise",
        urgency=Urgency.INFO,
        short_description="Adaptive cruise control active.",
        what_it_means="Vehicle is maintaining speed and distance from the car ahead using radar/camera.",
        what_to_do="Stay attentive. The system may not detect all obstacles.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="auto_headlights",
        display_name="Auto Headlights",
        urgency=Urgency.INFO,
        short_description="Automatic headlights active.",
        what_it_means="Headlights turn on/off automatically based on ambient light.",
        what_to_do="No action needed.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="auto_start_stop",
        display_name="Auto Start-Stop",
        urgency=Urgency.INFO,
        short_description="Auto start-stop system active.",
        what_it_means="Engine will automatically shut off at stops and restart when you lift the brake.",
        what_to_do="Normal operation. Press the disable button if you prefer to keep the engine running.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="hill_assist",
        display_name="Hill Start Assist",
        urgency=Urgency.INFO,
        short_description="Hill start assist active.",
        what_it_means="Brakes are temporarily held to prevent rollback when starting on a hill.",
        what_to_do="Normal operation. Apply gas to release.",
        symbol_color="green",
    ),
    WarningLightInfo(
        id="rear_fog",
        display_name="Rear Fog Light",
        urgency=Urgency.INFO,
        short_description="Rear fog light is on.",
        what_it_means="The rear high-intensity fog light is active.",
        what_to_do="Turn off when visibility improves to avoid dazzling drivers behind you.",
        symbol_color="orange",
    ),
]

_DATABASE: Dict[str, WarningLightInfo] = {info.id: info for info in ALL_LIGHTS}


def lookup(label: str) -> WarningLightInfo:
    info = _DATABASE.get(label)
    if info is not None:
        return info

    return WarningLightInfo(
        id=label,
        display_name=label.replace("_", " ").title(),
        urgency=Urgency.WARNING,
        short_description="Unrecognized dashboard symbol.",
        what_it_means="This symbol was not found in the built-in database.",
        what_to_do="Consult your vehicle's owner's manual for details.",
        symbol_color="orange",
    )
