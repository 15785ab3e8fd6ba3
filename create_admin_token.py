import sys
from app.core.security import create_access_token
from app.core.enums import UserRole


def create_admin_token(subject: str, expires_minutes: int | None = None) -> str:
    return create_access_token(subject, UserRole.ADMIN.value, expires_minutes)


def main():
    if len(sys.argv) < 2:
        print("Usage: python create_admin_token.py <subject> [expires_minutes]")
        sys.exit(1)

    subject = sys.argv[1].strip()
    if not subject:
        print("Error: subject cannot be empty")
        sys.exit(1)

    expires_minutes = None
    if len(sys.argv) > 2:
        try:
            expires_minutes = int(sys.argv[2])
        except ValueError:
            print(f"Error: expires_minutes must be an integer, got {sys.argv[2]!r}")
            sys.exit(1)

    token = create_admin_token(subject, expires_minutes)
    print(f"Admin token for '{subject}':")
    print(token)
    sys.exit(0)


if __name__ == "__main__":
    main()
