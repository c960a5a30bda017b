"""Static metadata describing Lecture Quiz."""

APP_NAME = "Lecture Quiz"
APP_VERSION = "0.2"
APP_ABOUT_TEXT = (
    "Lecture Quiz lets instructors author and activate multiple-choice quizzes "
    "and lets students take them with an optional time limit. Submissions are "
    "recorded for review through the instructor API."
)

HELP_TEXT = (
    "Quizzes can be created through the API or imported from a .txt file:\n\n"
    "TITLE: Radians\n"
    "TIMELIMIT: 5\n\n"
    "Q: What is $30^o$ in radians?\n"
    "A: \\frac{\\pi}{2}\nB: \\frac{\\pi}{6}\nC: \\frac{\\pi}{4}\nD: \\frac{\\pi}{3}\n"
    "CORRECT: B\nEXPLANATION: $30^o$ is one sixth of $180^o$."
)
