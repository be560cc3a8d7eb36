"""
Submission lifecycle: start/resume, save, submit with auto-scoring, manual grading
"""
import pytest

from app.models import Role, Submission


@pytest.fixture
def two_question_exam(teacher, student, make_question, make_exam, assign):
    """Published exam with single-choice questions worth 2 (key A) and 3 (key C)"""
    q1 = make_question(teacher, answer_key="A")
    q2 = make_question(teacher, answer_key="C")
    exam_id = make_exam(teacher, items=[(q1, 2), (q2, 3)], publish=True)
    assign(teacher, exam_id, student)
    return exam_id


def start(client, account, exam_id):
    return client.post(f"/api/exams/{exam_id}/start", headers=account.headers)


def paper_ids(client, teacher, exam_id):
    items = client.get(f"/api/exams/{exam_id}/paper", headers=teacher.headers).json()["data"]["items"]
    return [item["exam_question_id"] for item in items]


def save(client, account, submission_id, answers):
    return client.put(
        f"/api/submissions/{submission_id}/answers",
        json={"items": [{"exam_question_id": k, "answer_json": v} for k, v in answers.items()]},
        headers=account.headers,
    )


def test_start_twice_resumes_same_submission(client, teacher, student, two_question_exam):
    first = start(client, student, two_question_exam)
    assert first.status_code == 200
    submission_id = first.json()["data"]["submission_id"]

    eq1, _ = paper_ids(client, teacher, two_question_exam)
    assert save(client, student, submission_id, {eq1: "A"}).json()["data"]["saved"] == 1

    second = start(client, student, two_question_exam)
    assert second.json()["data"]["submission_id"] == submission_id

    answers = client.get(f"/api/submissions/{submission_id}", headers=student.headers).json()["data"]["answers"]
    assert [(a["exam_question_id"], a["answer_json"]) for a in answers] == [(eq1, "A")]


def test_unassigned_student_cannot_start_private_exam(client, make_account, two_question_exam):
    outsider = make_account("outsider")
    assert start(client, outsider, two_question_exam).status_code == 403


def test_public_exam_needs_no_assignment(client, teacher, student, make_question, make_exam):
    exam_id = make_exam(teacher, items=[(make_question(teacher), 1)], is_public=True, publish=True)
    assert start(client, student, exam_id).status_code == 200


def test_only_students_start(client, teacher, two_question_exam):
    assert start(client, teacher, two_question_exam).status_code == 403


def test_cannot_start_unpublished_or_missing_exam(client, teacher, student, make_exam):
    draft = make_exam(teacher, is_public=True)
    assert start(client, student, draft).status_code == 400
    assert start(client, student, 9999).status_code == 404


def test_cannot_start_outside_window(client, teacher, student, make_exam, exam_window, assign):
    early = make_exam(teacher, publish=True, publish_window=exam_window(hours_before=-1, hours_after=2))
    late = make_exam(teacher, publish=True, publish_window=exam_window(hours_before=3, hours_after=-1))
    assign(teacher, early, student)
    assign(teacher, late, student)

    assert start(client, student, early).status_code == 400
    assert start(client, student, late).status_code == 400


def test_plan_and_grade_gating(client, make_account, teacher, make_exam, assign):
    paid = make_exam(teacher, required_plan="pro", is_public=True, publish=True)
    graded = make_exam(teacher, required_grade_level="g10", is_public=True, publish=True)
    free_student = make_account("free_student")
    pro_student = make_account("pro_student", plan="pro", grade_level="g10")

    assert start(client, free_student, paid).status_code == 402
    assert start(client, free_student, graded).status_code == 403
    assert start(client, pro_student, paid).status_code == 200
    assert start(client, pro_student, graded).status_code == 200


def test_deadline_follows_duration(client, teacher, student, make_exam):
    timed = make_exam(teacher, duration_minutes=30, is_public=True, publish=True)
    untimed = make_exam(teacher, is_public=True, publish=True)

    sid = start(client, student, timed).json()["data"]["submission_id"]
    status = client.get(f"/api/submissions/{sid}/status", headers=student.headers).json()["data"]
    assert status["status"] == "in_progress"
    assert status["deadline_at"] is not None

    sid = start(client, student, untimed).json()["data"]["submission_id"]
    status = client.get(f"/api/submissions/{sid}/status", headers=student.headers).json()["data"]
    assert status["deadline_at"] is None


def test_save_skips_questions_not_on_paper(client, teacher, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]
    eq1, eq2 = paper_ids(client, teacher, two_question_exam)

    r = save(client, student, sid, {eq1: "A", eq2: "B", 99999: "X"})
    assert r.json()["data"]["saved"] == 2

    # Upsert overwrites the earlier answer
    save(client, student, sid, {eq2: "C"})
    answers = client.get(f"/api/submissions/{sid}", headers=student.headers).json()["data"]["answers"]
    assert {a["exam_question_id"]: a["answer_json"] for a in answers} == {eq1: "A", eq2: "C"}


def test_only_owner_saves_and_submits(client, make_account, student, two_question_exam, assign, teacher):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]
    other = make_account("other")
    assign(teacher, two_question_exam, other)

    assert save(client, other, sid, {1: "A"}).status_code == 403
    assert client.post(f"/api/submissions/{sid}/submit", headers=other.headers).status_code == 403


def test_submit_scores_objective_answers(client, db, teacher, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]
    eq1, eq2 = paper_ids(client, teacher, two_question_exam)
    save(client, student, sid, {eq1: "A", eq2: "B"})

    r = client.post(f"/api/submissions/{sid}/submit", headers=student.headers)
    assert r.status_code == 200
    assert r.json()["data"]["score_auto"] == 2

    db.expire_all()
    submission = db.query(Submission).filter(Submission.id == sid).one()
    assert submission.status == "submitted"
    assert submission.submitted_at is not None
    assert submission.score_auto == 2
    assert submission.score_total == 2

    answers = {a.exam_question_id: a for a in submission.answers}
    assert answers[eq1].score == 2 and answers[eq1].is_auto_scored
    assert answers[eq2].score == 0


def test_submit_scores_unanswered_questions_as_zero(client, teacher, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]

    r = client.post(f"/api/submissions/{sid}/submit", headers=student.headers)
    assert r.json()["data"]["score_auto"] == 0

    answers = client.get(f"/api/submissions/{sid}", headers=student.headers).json()["data"]["answers"]
    assert len(answers) == 2
    assert all(a["score"] == 0 for a in answers)


def test_submission_is_final(client, teacher, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]
    eq1, _ = paper_ids(client, teacher, two_question_exam)
    client.post(f"/api/submissions/{sid}/submit", headers=student.headers)

    assert client.post(f"/api/submissions/{sid}/submit", headers=student.headers).status_code == 400
    assert save(client, student, sid, {eq1: "A"}).status_code == 400
    assert start(client, student, two_question_exam).status_code == 400


@pytest.fixture
def mixed_exam(teacher, student, make_question, make_exam, assign):
    """Single choice worth 2 plus two essays worth 5 each"""
    choice = make_question(teacher, answer_key="A")
    essay1 = make_question(teacher, "essay", answer_key=None)
    essay2 = make_question(teacher, "essay", answer_key=None)
    exam_id = make_exam(teacher, items=[(choice, 2), (essay1, 5), (essay2, 5)], publish=True)
    assign(teacher, exam_id, student)
    return exam_id


def submitted(client, teacher, student, exam_id):
    sid = start(client, student, exam_id).json()["data"]["submission_id"]
    eq_choice, eq_essay1, eq_essay2 = paper_ids(client, teacher, exam_id)
    save(client, student, sid, {eq_choice: "A", eq_essay1: "Essay one", eq_essay2: "Essay two"})
    client.post(f"/api/submissions/{sid}/submit", headers=student.headers)
    return sid, (eq_choice, eq_essay1, eq_essay2)


def grade(client, account, sid, items, feedback=None):
    body = {"items": [{"exam_question_id": k, "score": v} for k, v in items.items()]}
    if feedback is not None:
        body["feedback"] = feedback
    return client.post(f"/api/submissions/{sid}/score", json=body, headers=account.headers)


def test_manual_grading_sets_totals_and_status(client, teacher, student, mixed_exam):
    sid, (_, essay1, essay2) = submitted(client, teacher, student, mixed_exam)

    r = grade(client, teacher, sid, {essay1: 4, essay2: 3}, feedback="Good work")
    assert r.status_code == 200
    assert r.json()["data"] == {"score_auto": 2, "score_manual": 7, "score_total": 9}

    detail = client.get(f"/api/submissions/{sid}", headers=student.headers).json()["data"]
    assert detail["submission"]["status"] == "graded"
    assert detail["submission"]["feedback"] == "Good work"
    scored = {a["exam_question_id"]: a for a in detail["answers"]}
    assert scored[essay1]["is_auto_scored"] is False
    assert scored[essay1]["score"] == 4


def test_partial_regrade_keeps_earlier_manual_scores(client, teacher, student, mixed_exam):
    sid, (_, essay1, essay2) = submitted(client, teacher, student, mixed_exam)
    grade(client, teacher, sid, {essay1: 4, essay2: 3})

    r = grade(client, teacher, sid, {essay2: 5})
    assert r.json()["data"] == {"score_auto": 2, "score_manual": 9, "score_total": 11}


def test_overriding_an_auto_scored_item_moves_it_to_manual(client, teacher, student, mixed_exam):
    sid, (choice, _, _) = submitted(client, teacher, student, mixed_exam)

    r = grade(client, teacher, sid, {choice: 1})
    assert r.json()["data"] == {"score_auto": 0, "score_manual": 1, "score_total": 1}


def test_grading_validates_items(client, teacher, student, mixed_exam):
    sid, (_, essay1, _) = submitted(client, teacher, student, mixed_exam)

    assert grade(client, teacher, sid, {essay1: 6}).status_code == 400
    assert grade(client, teacher, sid, {essay1: -1}).status_code == 400
    assert grade(client, teacher, sid, {123456: 1}).status_code == 400


def test_grading_requires_submitted_state(client, teacher, student, mixed_exam):
    sid = start(client, student, mixed_exam).json()["data"]["submission_id"]
    assert grade(client, teacher, sid, {}).status_code == 400


def test_only_exam_owner_or_admin_grades(client, make_account, teacher, admin, student, mixed_exam):
    sid, (_, essay1, _) = submitted(client, teacher, student, mixed_exam)
    other_teacher = make_account("t2", Role.TEACHER)

    assert grade(client, student, sid, {essay1: 5}).status_code == 403
    assert grade(client, other_teacher, sid, {essay1: 5}).status_code == 403
    assert grade(client, admin, sid, {essay1: 5}).status_code == 200
    assert grade(client, teacher, 9999, {essay1: 5}).status_code == 404


def test_submission_read_access(client, make_account, teacher, admin, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]
    other_student = make_account("other")
    other_teacher = make_account("t2", Role.TEACHER)

    assert client.get(f"/api/submissions/{sid}", headers=student.headers).status_code == 200
    assert client.get(f"/api/submissions/{sid}", headers=teacher.headers).status_code == 200
    assert client.get(f"/api/submissions/{sid}", headers=admin.headers).status_code == 200
    assert client.get(f"/api/submissions/{sid}", headers=other_student.headers).status_code == 403
    assert client.get(f"/api/submissions/{sid}/status", headers=other_teacher.headers).status_code == 403

    detail = client.get(f"/api/submissions/{sid}", headers=teacher.headers).json()["data"]["submission"]
    assert detail["author_id"] == teacher.id
    assert detail["user_id"] == student.id


def test_exam_submission_listing(client, teacher, student, two_question_exam):
    sid = start(client, student, two_question_exam).json()["data"]["submission_id"]

    r = client.get(f"/api/exams/{two_question_exam}/submissions", headers=teacher.headers)
    assert r.status_code == 200
    rows = r.json()["data"]["submissions"]
    assert [(row["id"], row["username"], row["status"]) for row in rows] == [(sid, "student", "in_progress")]

    assert client.get(f"/api/exams/{two_question_exam}/submissions", headers=student.headers).status_code == 403
