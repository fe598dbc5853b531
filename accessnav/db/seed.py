"""Database seeding for AccessNav.

Creates the system roles, the permission catalog and the default grants.

Usage:
    python -m accessnav.db.seed
"""

import sys

from accessnav.core.config import get_settings
from accessnav.core.logger import configure_logging
from accessnav.core.rbac import initialize_rbac
from accessnav.db.models import Role


def main() -> int:
    from accessnav.db.session import SessionLocal

    configure_logging(get_settings())
    db = SessionLocal()
    try:
        summary = initialize_rbac(db)
        print(f"Seeded {summary['roles']} system roles and {summary['permissions']} permissions:")
        for role in db.query(Role).filter(Role.is_system.is_(True)).order_by(Role.name):
            print(f"  - {role.name}: {summary['grants'].get(role.name, 0)} permissions")
        print("\nSeeding complete!")
        return 0
    except Exception as e:
        print(f"Error: {e}")
        return 1
    finally:
        db.close()


# CLI script for seeding
if __name__ == "__main__":
    sys.exit(main())
