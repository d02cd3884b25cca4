from .faculty import Faculty, Department
from .user import User
from .course import Course
from .prerequisite import CoursePrerequisite, CourseCorequisite
from .curriculum import (
    Curriculum,
    CurriculumCourse,
    CurriculumCoursePrerequisite,
    CurriculumCourseCorequisite,
)
from .curriculum_constraint import CurriculumConstraint
from .elective_rule import ElectiveRule
from .course_type import CourseType, DepartmentCourseType
from .credit_pool import CreditPool, PoolSource, SubCategoryPool, AttachedPoolCourse
from .blacklist import Blacklist, BlacklistCourse, CurriculumBlacklist
from .concentration import Concentration, ConcentrationCourse, CurriculumConcentration
from .audit_log import AuditLog
