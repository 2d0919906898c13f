"""Static metadata describing ExamQt."""

APP_NAME = "ExamQt"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamQt is a course and timed-testing backend built with FastAPI. "
    "Administrators author question banks; students take randomly sampled, "
    "time-boxed multiple-choice tests that are scored when they finish."
)
