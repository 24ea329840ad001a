# devcom/Services/packet_replay.py
"""
Offline packet replay.

Feeds a capture file through the configured protocol, one packet per line:

    python -m devcom.Services.packet_replay --file capture.txt --protocol sipgear
    python -m devcom.Services.packet_replay --file frames.hex --protocol gp6000 --hex --no-insert

--hex      lines are hex dumps of binary packets
--no-insert decode and print only (no database access)
--ip       source address used for allow-list checks
"""

import argparse
from pathlib import Path
from typing import Iterator, List, Optional

from dotenv import load_dotenv

from devcom.Core.exceptions import ProtocolError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay captured device packets")
    parser.add_argument("--file", required=True, type=Path, help="Capture file, one packet per line")
    parser.add_argument("--protocol", default=None, help="Protocol preset (default: DCS_PROTOCOL)")
    parser.add_argument("--hex", action="store_true", help="Lines are hex encoded binary packets")
    parser.add_argument("--ip", default=None, help="Source IP address reported to the resolver")
    parser.add_argument("--port", default=None, type=int, help="Source port reported to the resolver")
    parser.add_argument("--no-insert", action="store_true", help="Decode only, do not store events")
    return parser.parse_args(argv)


def read_packets(path: Path, as_hex: bool) -> Iterator[bytes]:
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if as_hex:
                try:
                    yield bytes.fromhex(line)
                except ValueError:
                    print(f"[REPLAY] line {line_no}: not a hex dump, skipped")
                continue
            yield line.encode("ascii", errors="replace")


def replay(args: argparse.Namespace) -> int:
    from devcom.Core.config import settings
    from devcom.Services.protocols import create_decoder

    config = settings.protocol_config(args.protocol)
    packets = read_packets(args.file, args.hex)

    if args.no_insert:
        decoder = create_decoder(config.decoder)
        count = 0
        for packet in packets:
            try:
                result = decoder.decode(packet)
            except ProtocolError as e:
                print(f"[REPLAY] dropped: {e}")
                continue
            for event in result.events:
                count += 1
                print(f"[REPLAY] {event.log_fields()}")
        print(f"[REPLAY] {count} fixes decoded")
        return 0

    from devcom.DB.database import init_db
    from devcom.Services.session import open_session

    init_db()
    session = open_session(config, args.ip, args.port, is_tcp=False)
    try:
        for packet in packets:
            session.handle_datagram(packet)
            if session.terminate_session():
                print("[REPLAY] session terminated by framing/auth policy")
                break
    finally:
        session.session_terminated()
    print(f"[REPLAY] {session.fix_count} fixes stored, {session.error_count} errors")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    return replay(parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())
