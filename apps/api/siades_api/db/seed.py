"""Seed data for development and testing."""

from sqlalchemy.orm import Session

from siades_api.models import LetterType, Resident, User, UserRole

SEED_USERS = [
    ("Admin SIADes", "admin@siades.test", UserRole.ADMIN),
    ("Operator Desa", "operator@siades.test", UserRole.OPERATOR),
    ("Kepala Desa", "kepaladesa@siades.test", UserRole.KEPALA_DESA),
]

SEED_LETTER_TYPES = [
    ("Surat Keterangan Domisili", "Surat keterangan tempat tinggal"),
    ("Surat Keterangan Usaha", "Untuk keperluan usaha"),
    ("Surat Keterangan Tidak Mampu", "Untuk keperluan bantuan sosial"),
]


def seed_users(db: Session):
    """Seed one user per role."""
    for name, email, role in SEED_USERS:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(name=name, email=email, role=role.value, is_active=True)
            db.add(user)
            db.flush()
            print(f"✓ Created {role.value} user: {email} (ID: {user.id})")
        else:
            print(f"✓ User already exists: {email} (ID: {user.id})")
    db.commit()


def seed_letter_types(db: Session):
    """Seed the common letter types."""
    for name, description in SEED_LETTER_TYPES:
        letter_type = db.query(LetterType).filter(LetterType.name == name).first()
        if not letter_type:
            db.add(LetterType(name=name, description=description, is_active=True))
            print(f"✓ Created letter type: {name}")
        else:
            print(f"✓ Letter type already exists: {name}")
    db.commit()


def seed_residents(db: Session):
    """Seed a demo resident."""
    nik = "3301010101010001"
    resident = db.query(Resident).filter(Resident.nik == nik).first()
    if not resident:
        resident = Resident(nik=nik, full_name="Budi Santoso", is_active=True)
        db.add(resident)
        db.commit()
        print(f"✓ Created demo resident: {resident.full_name} (ID: {resident.id})")
    else:
        print(f"✓ Demo resident already exists: {resident.full_name}")


def seed_all(db: Session):
    """Seed all development data."""
    seed_users(db)
    seed_letter_types(db)
    seed_residents(db)
