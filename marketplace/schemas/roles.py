import enum


class UserRole(str, enum.Enum):
    TALENT = "talent"
    RECRUITER = "recruiter"
