# devcom/Core/status_codes.py

"""
Event status codes.

Values follow the 16-bit code space used by OpenGTS-compatible tracking
backends so stored events stay comparable with other ingestion servers.
"""

STATUS_NONE = 0x0000
STATUS_LOCATION = 0xF020
STATUS_WAYMARK_0 = 0xF030

# Digital input transitions: STATUS_INPUT_ON_00 + n / STATUS_INPUT_OFF_00 + n
STATUS_INPUT_ON_00 = 0xF420
STATUS_INPUT_OFF_00 = 0xF440

MAX_SIMULATED_INPUTS = 16

STATUS_NAMES = {
    STATUS_NONE: "None",
    STATUS_LOCATION: "Location",
    STATUS_WAYMARK_0: "Waymark_0",
}


def input_status_code(bit: int, on: bool) -> int:
    """Status code for digital input `bit` switching on/off (bit 0..15)."""
    if not 0 <= bit < MAX_SIMULATED_INPUTS:
        raise ValueError(f"Input bit out of range: {bit}")
    return (STATUS_INPUT_ON_00 if on else STATUS_INPUT_OFF_00) + bit


def status_name(code: int) -> str:
    if code in STATUS_NAMES:
        return STATUS_NAMES[code]
    if STATUS_INPUT_ON_00 <= code < STATUS_INPUT_ON_00 + MAX_SIMULATED_INPUTS:
        return f"InputOn_{code - STATUS_INPUT_ON_00:02d}"
    if STATUS_INPUT_OFF_00 <= code < STATUS_INPUT_OFF_00 + MAX_SIMULATED_INPUTS:
        return f"InputOff_{code - STATUS_INPUT_OFF_00:02d}"
    return f"0x{code:04X}"
