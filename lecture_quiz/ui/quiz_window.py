"""Qt window in which a student (or previewing instructor) takes one quiz."""

from __future__ import annotations

import logging

from PySide6.QtCore import QEvent, Qt, QTimer
from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from lecture_quiz.constants.quiz_constants import FACULTY_CHOICES, YEAR_CHOICES
from lecture_quiz.constants.ui_constants import (
    COMPLETED_TITLE,
    ENTRY_DESCRIPTION,
    ENTRY_TITLE,
    FINISH_QUIZ_BUTTON,
    FLAGGED_MESSAGE,
    INACTIVE_MESSAGE,
    NEXT_QUESTION_BUTTON,
    PREVIEW_BADGE,
    PREVIEW_ENTRY_DESCRIPTION,
    PREVIEW_ENTRY_TITLE,
    PREVIEW_START_BUTTON,
    PREVIEW_WINDOW_TITLE,
    QUIZ_LOAD_FAILED_MESSAGE,
    START_BUTTON,
    SUBMIT_ANSWER_BUTTON,
    WINDOW_TITLE,
)
from lecture_quiz.core.markdown_renderer import renderer
from lecture_quiz.core.models import ParticipantDetails, Phase, SubmissionStatus
from lecture_quiz.core.scoring import score_percentage
from lecture_quiz.core.services.quiz_session import (
    EntryValidationError,
    Notice,
    QuizFetchError,
    QuizGateway,
    QuizSessionController,
    SessionSnapshot,
)
from lecture_quiz.styling.styles import Styles
from lecture_quiz.ui.dialog_helpers import confirm_leave_quiz, show_error
from lecture_quiz.ui.qt_scheduler import QtScheduler

logger = logging.getLogger(__name__)

_OPTION_LETTERS = ("A", "B", "C", "D")


class QuizWindow(QMainWindow):
    """Renders session snapshots and forwards intents to the controller.

    The window reports itself hidden while it is minimized or while the
    application is not the active one; the controller turns that into the
    integrity grace period.
    """

    def __init__(self, gateway: QuizGateway, quiz_id: int, privileged: bool = False) -> None:
        super().__init__()
        self.setWindowTitle(PREVIEW_WINDOW_TITLE if privileged else WINDOW_TITLE)
        self.setStyleSheet(Styles.get_main_window_style())
        self.resize(820, 640)

        self._gateway = gateway
        self._quiz_id = quiz_id
        self._privileged = privileged
        self._scheduler = QtScheduler(self)
        self._controller: QuizSessionController | None = None

        self._build_ui()
        QGuiApplication.instance().applicationStateChanged.connect(self._report_visibility)
        self._open_session()

    # --- Session lifecycle ---

    def _open_session(self) -> None:
        if self._controller is not None:
            self._controller.close()
        try:
            self._controller = QuizSessionController.open(
                self._gateway,
                self._quiz_id,
                self._scheduler,
                privileged=self._privileged,
                on_change=self._render,
                on_notice=self._show_notice,
            )
        except QuizFetchError as exc:
            logger.error("Closing quiz window: %s", exc)
            show_error(self, WINDOW_TITLE, QUIZ_LOAD_FAILED_MESSAGE)
            QTimer.singleShot(0, self.close)
            return
        self._render(self._controller.snapshot())

    def changeEvent(self, event: QEvent) -> None:
        super().changeEvent(event)
        if event.type() in (QEvent.Type.WindowStateChange, QEvent.Type.ActivationChange):
            self._report_visibility()

    def closeEvent(self, event) -> None:
        controller = self._controller
        if controller is not None and controller.phase is Phase.ACTIVE and not confirm_leave_quiz(self):
            event.ignore()
            return
        if controller is not None:
            controller.close()
        super().closeEvent(event)

    def _report_visibility(self, *_args) -> None:
        if self._controller is None:
            return
        app_active = QGuiApplication.applicationState() == Qt.ApplicationState.ApplicationActive
        self._controller.set_hidden(self.isMinimized() or not app_active)

    # --- UI construction ---

    def _build_ui(self) -> None:
        self._stack = QStackedWidget(self)
        self.setCentralWidget(self._stack)

        self._inactive_page = self._build_inactive_page()
        self._entry_page = self._build_entry_page()
        self._active_page = self._build_active_page()
        self._completed_page = self._build_completed_page()
        self._loading_page = QLabel("Loading...", self)
        self._loading_page.setAlignment(Qt.AlignCenter)

        for page in (
            self._loading_page,
            self._inactive_page,
            self._entry_page,
            self._active_page,
            self._completed_page,
        ):
            self._stack.addWidget(page)

    def _build_inactive_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)
        layout.addStretch()
        message = QLabel(INACTIVE_MESSAGE, page)
        message.setAlignment(Qt.AlignCenter)
        message.setStyleSheet(Styles.get_title_style())
        layout.addWidget(message)
        refresh_button = QPushButton("Refresh", page)
        refresh_button.clicked.connect(self._open_session)
        layout.addWidget(refresh_button, alignment=Qt.AlignCenter)
        layout.addStretch()
        return page

    def _build_entry_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)
        group = QGroupBox(page)
        group_layout = QVBoxLayout(group)

        self._entry_title = QLabel(ENTRY_TITLE, group)
        self._entry_title.setStyleSheet(Styles.get_title_style())
        group_layout.addWidget(self._entry_title)
        self._entry_description = QLabel(ENTRY_DESCRIPTION, group)
        self._entry_description.setWordWrap(True)
        group_layout.addWidget(self._entry_description)

        self._entry_form = QWidget(group)
        form = QFormLayout(self._entry_form)
        self._name_input = QLineEdit(self._entry_form)
        self._email_input = QLineEdit(self._entry_form)
        self._roll_input = QLineEdit(self._entry_form)
        self._faculty_input = QComboBox(self._entry_form)
        self._faculty_input.addItems(["", *FACULTY_CHOICES])
        self._year_input = QComboBox(self._entry_form)
        self._year_input.addItems(["", *YEAR_CHOICES])
        form.addRow("Full Name", self._name_input)
        form.addRow("Email", self._email_input)
        form.addRow("Roll Number", self._roll_input)
        form.addRow("Faculty", self._faculty_input)
        form.addRow("Year (Batch - BS)", self._year_input)
        group_layout.addWidget(self._entry_form)

        self._entry_error = QLabel("", group)
        self._entry_error.setStyleSheet(Styles.get_notice_style("error"))
        group_layout.addWidget(self._entry_error)

        self._start_button = QPushButton(START_BUTTON, group)
        self._start_button.clicked.connect(self._handle_start)
        group_layout.addWidget(self._start_button)

        layout.addStretch()
        layout.addWidget(group)
        layout.addStretch()
        return page

    def _build_active_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)

        header = QHBoxLayout()
        title_column = QVBoxLayout()
        self._quiz_title_label = QLabel("", page)
        self._quiz_title_label.setStyleSheet(Styles.get_title_style())
        title_column.addWidget(self._quiz_title_label)
        self._participant_label = QLabel("", page)
        title_column.addWidget(self._participant_label)
        header.addLayout(title_column)
        header.addStretch()
        self._timer_label = QLabel("", page)
        header.addWidget(self._timer_label)
        layout.addLayout(header)

        card = QGroupBox(page)
        card_layout = QVBoxLayout(card)
        self._progress_label = QLabel("", card)
        card_layout.addWidget(self._progress_label)
        self._question_label = QLabel("", card)
        self._question_label.setTextFormat(Qt.RichText)
        self._question_label.setWordWrap(True)
        card_layout.addWidget(self._question_label)

        self._option_buttons: list[QPushButton] = []
        for index in range(len(_OPTION_LETTERS)):
            button = QPushButton("", card)
            button.clicked.connect(lambda _checked=False, i=index: self._handle_option(i))
            self._option_buttons.append(button)
            card_layout.addWidget(button)

        self._explanation_label = QLabel("", card)
        self._explanation_label.setTextFormat(Qt.RichText)
        self._explanation_label.setWordWrap(True)
        card_layout.addWidget(self._explanation_label)

        action_row = QHBoxLayout()
        self._notice_label = QLabel("", card)
        action_row.addWidget(self._notice_label)
        action_row.addStretch()
        self._action_button = QPushButton(SUBMIT_ANSWER_BUTTON, card)
        self._action_button.clicked.connect(self._handle_action)
        action_row.addWidget(self._action_button)
        card_layout.addLayout(action_row)

        layout.addWidget(card, stretch=1)
        return page

    def _build_completed_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)
        layout.addStretch()
        title = QLabel(COMPLETED_TITLE, page)
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet(Styles.get_title_style())
        layout.addWidget(title)
        self._final_score_label = QLabel("", page)
        self._final_score_label.setAlignment(Qt.AlignCenter)
        self._final_score_label.setStyleSheet("font-size: 36pt; font-weight: bold;")
        layout.addWidget(self._final_score_label)
        self._percentage_label = QLabel("", page)
        self._percentage_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._percentage_label)
        self._flagged_label = QLabel(FLAGGED_MESSAGE, page)
        self._flagged_label.setAlignment(Qt.AlignCenter)
        self._flagged_label.setStyleSheet(Styles.get_notice_style("error"))
        layout.addWidget(self._flagged_label)
        self._submission_label = QLabel("", page)
        self._submission_label.setAlignment(Qt.AlignCenter)
        layout.addWidget(self._submission_label)
        layout.addStretch()
        return page

    # --- Intent forwarding ---

    def _handle_start(self) -> None:
        details = ParticipantDetails(
            name=self._name_input.text(),
            email=self._email_input.text(),
            roll_number=self._roll_input.text(),
            faculty=self._faculty_input.currentText(),
            year=self._year_input.currentText(),
        )
        try:
            self._controller.begin_entry(details)
        except EntryValidationError as exc:
            labels = ", ".join(field.replace("_", " ") for field in exc.missing_fields)
            self._entry_error.setText(f"Required: {labels}")
            return
        self._entry_error.setText("")

    def _handle_option(self, index: int) -> None:
        question = self._controller.snapshot().current_question
        if question is not None:
            self._controller.select_option(question.options[index])

    def _handle_action(self) -> None:
        if self._controller.snapshot().answered:
            self._controller.advance()
        else:
            self._controller.submit_answer()

    # --- Rendering ---

    def _show_notice(self, notice: Notice) -> None:
        self._notice_label.setStyleSheet(Styles.get_notice_style(notice.level.value))
        self._notice_label.setText(notice.message)

    def _render(self, snapshot: SessionSnapshot) -> None:
        if snapshot.phase is Phase.LOADING:
            self._stack.setCurrentWidget(self._loading_page)
        elif snapshot.phase is Phase.INACTIVE:
            self._stack.setCurrentWidget(self._inactive_page)
        elif snapshot.phase is Phase.ENTRY_FORM:
            self._render_entry(snapshot)
        elif snapshot.phase is Phase.ACTIVE:
            self._render_active(snapshot)
        else:
            self._render_completed(snapshot)

    def _render_entry(self, snapshot: SessionSnapshot) -> None:
        self._entry_title.setText(PREVIEW_ENTRY_TITLE if snapshot.privileged else ENTRY_TITLE)
        self._entry_description.setText(
            PREVIEW_ENTRY_DESCRIPTION if snapshot.privileged else ENTRY_DESCRIPTION
        )
        self._entry_form.setVisible(not snapshot.privileged)
        self._start_button.setText(PREVIEW_START_BUTTON if snapshot.privileged else START_BUTTON)
        self._stack.setCurrentWidget(self._entry_page)

    def _render_active(self, snapshot: SessionSnapshot) -> None:
        self._quiz_title_label.setText(snapshot.quiz_title)
        participant = snapshot.participant
        self._participant_label.setText(
            "" if snapshot.privileged else f"{participant.name} | {participant.roll_number}"
        )
        if snapshot.privileged:
            self._timer_label.setText(PREVIEW_BADGE)
            self._timer_label.setStyleSheet(Styles.get_notice_style("info"))
        elif snapshot.formatted_time is not None:
            self._timer_label.setText(snapshot.formatted_time)
            self._timer_label.setStyleSheet(Styles.get_timer_style(snapshot.is_time_urgent))
        else:
            self._timer_label.setText("")

        question = snapshot.current_question
        if question is None:
            return
        self._progress_label.setText(
            f"QUESTION {snapshot.question_index + 1} OF {snapshot.total_questions}"
        )
        self._question_label.setText(renderer.render_fragment(question.text))

        for index, button in enumerate(self._option_buttons):
            option = question.options[index]
            button.setText(f"{_OPTION_LETTERS[index]}.  {option}")
            button.setEnabled(not snapshot.answered)
            button.setStyleSheet(Styles.get_option_style(self._option_state(snapshot, option)))

        if snapshot.answered:
            self._explanation_label.setText(
                f"<b>Explanation:</b> {renderer.render_inline(question.explanation)}"
            )
            self._action_button.setText(
                FINISH_QUIZ_BUTTON if snapshot.is_last_question else NEXT_QUESTION_BUTTON
            )
            self._action_button.setEnabled(True)
        else:
            self._explanation_label.setText("")
            self._action_button.setText(SUBMIT_ANSWER_BUTTON)
            self._action_button.setEnabled(bool(snapshot.selected_answer))
        self._stack.setCurrentWidget(self._active_page)

    @staticmethod
    def _option_state(snapshot: SessionSnapshot, option: str) -> str:
        question = snapshot.current_question
        if not snapshot.answered:
            return "selected" if option == snapshot.selected_answer else "idle"
        if option == question.correct_answer:
            return "correct"
        if option == snapshot.selected_answer:
            return "wrong"
        return "dimmed"

    def _render_completed(self, snapshot: SessionSnapshot) -> None:
        self._final_score_label.setText(f"{snapshot.score} / {snapshot.total_questions}")
        percentage = score_percentage(snapshot.score, snapshot.total_questions)
        self._percentage_label.setText(f"You scored {percentage}%")
        self._flagged_label.setVisible(snapshot.integrity_flag)
        status_text = {
            SubmissionStatus.SAVED: "Your submission has been recorded.",
            SubmissionStatus.FAILED: "Your submission could not be saved.",
            SubmissionStatus.SKIPPED: "Preview only. Nothing was recorded.",
        }.get(snapshot.submission_status, "")
        self._submission_label.setText(status_text)
        self._stack.setCurrentWidget(self._completed_page)
