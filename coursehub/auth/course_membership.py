"""Course relationships of instructors, teaching assistants and students."""

from collections.abc import Iterable

from sqlalchemy.orm import Session

from coursehub.models.assignment import Assignment, Participant
from coursehub.models.course import Course, TaMapping
from coursehub.models.user import User


class CourseMembershipIndex:
    def __init__(self, db: Session):
        self.db = db

    def courses_instructed_by(self, user: User) -> set[Course]:
        return set(self.db.query(Course).filter(Course.instructor_id == user.id).all())

    def courses_assisted_by(self, ta_user: User) -> set[Course]:
        courses = (
            self.db.query(Course)
            .join(TaMapping, TaMapping.course_id == Course.id)
            .filter(TaMapping.ta_id == ta_user.id)
            .all()
        )
        return set(courses)

    def participates_in(self, student: User, course: Course) -> bool:
        return self.participates_in_any(student, [course])

    def participates_in_any(self, student: User, courses: Iterable[Course]) -> bool:
        course_ids = {course.id for course in courses}
        if not course_ids:
            return False

        participant = (
            self.db.query(Participant.id)
            .join(Assignment, Assignment.id == Participant.assignment_id)
            .filter(
                Participant.user_id == student.id,
                Assignment.course_id.in_(course_ids),
            )
            .first()
        )
        return participant is not None

    @staticmethod
    def shared_course_exists(courses_a: Iterable[Course], courses_b: Iterable[Course]) -> bool:
        return not {course.id for course in courses_a}.isdisjoint(course.id for course in courses_b)
