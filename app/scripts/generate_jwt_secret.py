"""
Print a random secret for JWT_SECRET:
  python -m app.scripts.generate_jwt_secret
Use a different secret per environment and keep it out of version control.
"""

import sys

from app.core.security import generate_jwt_secret


def main() -> int:
    secret = generate_jwt_secret()
    print(secret)
    print(f"\nAdd to .env:\n  JWT_SECRET={secret}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
