#!/usr/bin/env python
"""Idempotent seed script for demo companies, users and company default settings.

Usage:
    python backend/scripts/seed_tubex.py                 # seed normally
    python backend/scripts/seed_tubex.py --show-matrix   # print company-role -> granted permission counts
    python backend/scripts/seed_tubex.py --dry-run       # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from tubex import create_app, get_db  # type: ignore
from tubex.models.authz import Base, Company, User
from tubex.constants.permissions import ROLE_PERMISSIONS
from tubex.services.settings import SettingsStore, SqlKeyValueStore

DEMO_COMPANIES = [
    ('Acme Supply', 'supplier'),
    ('Northwind Dealers', 'dealer'),
]
DEMO_ROLES = ['admin', 'manager', 'staff']


def ensure_companies(session):
    created = 0
    companies = {}
    for name, company_type in DEMO_COMPANIES:
        company = session.execute(select(Company).where(Company.name==name)).scalar_one_or_none()
        if not company:
            company = Company(name=name, company_type=company_type)
            session.add(company)
            created += 1
        companies[company_type] = company
    session.flush()
    return companies, created


def ensure_users(session, companies, password: str):
    created = 0
    for company_type, company in companies.items():
        for role in DEMO_ROLES:
            email = f"{role}@{company_type}.example.com"
            if session.execute(select(User).where(User.email==email)).scalar_one_or_none():
                continue
            user = User(name=f"{company_type.title()} {role.title()}", email=email, password_hash='', role=role, company_id=company.id)
            user.set_password(password)
            session.add(user)
            created += 1
    return created


def ensure_company_settings(session, companies):
    store = SettingsStore(SqlKeyValueStore(lambda: session))
    seeded = 0
    for company in companies.values():
        if store.company_version(company.id) == 0:
            store.save_company_settings(company.id, store.load_company_settings(company.id))
            seeded += 1
    return seeded


def print_matrix_summary():
    name_w = max(len(k) for k in ROLE_PERMISSIONS)
    print(f"{'Company-Role'.ljust(name_w)} | Granted")
    print('-' * (name_w + 12))
    for key, perms in ROLE_PERMISSIONS.items():
        print(f"{key.ljust(name_w)} | {str(sum(1 for v in perms.values() if v)).rjust(7)}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed Tubex demo companies, users and settings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_tubex.py\n  dry run: seed_tubex.py --dry-run\n  show matrix: seed_tubex.py --show-matrix\n""")
    )
    p.add_argument('--show-matrix', action='store_true', help='Print granted permission counts per company-role')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM settings_records LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            import tubex.models.settings_record  # noqa: F401
            session.rollback()
            Base.metadata.create_all(session.get_bind())

        companies, created_c = ensure_companies(session)
        created_u = ensure_users(session, companies, os.getenv('SEED_PASSWORD', 'ChangeMe123!'))
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Companies would create: {created_c}, Users would create: {created_u}")
        else:
            # settings writes commit, so they only run for real seeds
            seeded = ensure_company_settings(session, companies)
            session.commit()
            print(f"[DONE] Companies created: {created_c}, Users created: {created_u}, Company settings seeded: {seeded}")
        if args.show_matrix:
            print_matrix_summary()


if __name__ == '__main__':
    main()
