"""Qt UI constants and user-facing messages."""

WINDOW_TITLE: str = "Lecture Quiz"
PREVIEW_WINDOW_TITLE: str = "Lecture Quiz (Preview)"

INACTIVE_MESSAGE: str = "Wait for the instructor to start the quiz."
ENTRY_TITLE: str = "Enter Details"
ENTRY_DESCRIPTION: str = "Please provide your information to start the quiz."
PREVIEW_ENTRY_TITLE: str = "Admin Preview"
PREVIEW_ENTRY_DESCRIPTION: str = (
    "You can start this quiz immediately. No student details are required, "
    "and no submission will be recorded."
)
START_BUTTON: str = "Start Quiz"
PREVIEW_START_BUTTON: str = "Start Preview"
SUBMIT_ANSWER_BUTTON: str = "Submit Answer"
NEXT_QUESTION_BUTTON: str = "Next Question"
FINISH_QUIZ_BUTTON: str = "Finish Quiz"
PREVIEW_BADGE: str = "Preview Mode"
COMPLETED_TITLE: str = "Quiz Completed!"
FLAGGED_MESSAGE: str = "Flagged for suspicious activity"

FILL_ALL_DETAILS_MESSAGE: str = "Please fill in all details"
CORRECT_ANSWER_MESSAGE: str = "Correct Answer!"
INCORRECT_ANSWER_MESSAGE: str = "Incorrect Answer"
RETURN_WARNING_MESSAGE: str = "Warning: Return to the quiz immediately!"
AUTO_SUBMITTED_MESSAGE: str = "Quiz submitted automatically due to inactivity."
TIME_UP_MESSAGE: str = "Time is up. Your quiz has been submitted."
PREVIEW_COMPLETED_MESSAGE: str = "Quiz completed (Admin Mode - No submission saved)"
SUBMISSION_SAVED_MESSAGE: str = "Quiz submitted successfully!"
SUBMISSION_FAILED_MESSAGE: str = "Failed to save submission"
QUIZ_LOAD_FAILED_MESSAGE: str = "Failed to load quiz"
