# quiz_app.py
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QFileDialog, QMessageBox, QComboBox,
    QCheckBox, QGroupBox, QRadioButton, QButtonGroup, QLineEdit,
    QDoubleSpinBox, QInputDialog
)
from PyQt5.QtGui import QFont
from PyQt5.QtCore import Qt

from quiz_config import AppConfig
from quiz_models import AnswerRequired, InvalidInput, ParseWarning, QuestionRecord, QuizRecord, ScoringConfig
from quiz_parser import generate_fallback, parse_file
from quiz_session import QuizSession
from quiz_store import QuizStore

logger = logging.getLogger(__name__)


class QuestionBank:
    """库名 → 题目列表；选择 ALL 时合并全部题库"""
    ALL = "全部题库"

    def __init__(self):
        self._banks: Dict[str, List[QuestionRecord]] = {}

    def load(self, path: str, default_marks: float = 1) -> Tuple[str, List[QuestionRecord], List[ParseWarning]]:
        """以文件名作库名载入题库文件"""
        name = Path(path).stem
        qs, warnings = parse_file(path, default_marks)
        self._banks[name] = qs
        return name, qs, warnings

    def put(self, name: str, qs: List[QuestionRecord]) -> str:
        self._banks[name] = list(qs)
        return name

    def select(self, name: str) -> List[QuestionRecord]:
        if name == self.ALL:
            return [q for qs in self._banks.values() for q in qs]
        return list(self._banks.get(name, []))


class QuizWindow(QMainWindow):
    BASE_WIDTH = 860
    BASE_HEIGHT = 640
    BASE_FONT = 12          # pt

    def __init__(self, config: Optional[AppConfig] = None):
        super().__init__()
        self.config = config or AppConfig()
        self.setWindowTitle("答题小软件")
        self.resize(self.BASE_WIDTH, self.BASE_HEIGHT)

        # ----------------- 数据 -----------------
        self.bank = QuestionBank()
        self.store = QuizStore(self.config.store_dir, self.config.max_questions)
        self.session: Optional[QuizSession] = None
        self.opt_radios: List[QRadioButton] = []
        self.current_font_size = self.BASE_FONT

        # ----------------- UI -----------------
        self._init_ui()
        self._apply_style()
        self.adjust_ui_scaling()

    # -------------------------------------------------
    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.adjust_ui_scaling()

    def adjust_ui_scaling(self):
        """根据窗口尺寸调整字号和按钮高度"""
        factor = min(self.width() / self.BASE_WIDTH, self.height() / self.BASE_HEIGHT)
        new_pt = max(8, int(self.BASE_FONT * factor))
        font = QFont()
        font.setPointSize(new_pt)
        self.current_font_size = new_pt

        for w in (self.lbl_progress, self.lbl_question, self.lbl_feedback, self.cb_bank,
                  self.ed_topic, *self._buttons, *self._settings_widgets):
            w.setFont(font)
        for rb in self.opt_radios:
            rb.setStyleSheet(f"font-size: {new_pt}pt; padding: 6px 12px;")

        btn_h = max(24, int(30 * factor))
        for btn in self._buttons:
            btn.setMinimumHeight(btn_h)
        self.update()

    # -------------------------------------------------
    def _init_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout()
        main_layout.setContentsMargins(32, 24, 32, 24)
        main_layout.setSpacing(14)
        central.setLayout(main_layout)

        # ---------- 题库来源 ----------
        top_layout = QHBoxLayout()
        top_layout.setSpacing(12)
        main_layout.addLayout(top_layout)

        self.btn_upload = QPushButton("上传题库")
        self.btn_upload.clicked.connect(self.upload_bank)
        top_layout.addWidget(self.btn_upload)

        self.btn_open = QPushButton("打开试卷")
        self.btn_open.clicked.connect(self.open_quiz)
        top_layout.addWidget(self.btn_open)

        self.ed_topic = QLineEdit()
        self.ed_topic.setPlaceholderText("主题（兜底出题）")
        top_layout.addWidget(self.ed_topic)

        self.btn_fallback = QPushButton("兜底出题")
        self.btn_fallback.clicked.connect(self.add_fallback_bank)
        top_layout.addWidget(self.btn_fallback)

        self.cb_bank = QComboBox()
        self.cb_bank.addItem(QuestionBank.ALL)
        self.cb_bank.setMinimumWidth(140)
        top_layout.addWidget(self.cb_bank)

        # ---------- 计分设置 ----------
        settings_layout = QHBoxLayout()
        settings_layout.setSpacing(12)
        main_layout.addLayout(settings_layout)

        self.chk_negative = QCheckBox("答错扣分")
        self.chk_negative.setEnabled(self.config.enable_negative_marks)
        settings_layout.addWidget(self.chk_negative)

        self.sp_penalty = QDoubleSpinBox()
        self.sp_penalty.setRange(0, 1000)
        self.sp_penalty.setSingleStep(0.25)
        self.sp_penalty.setValue(0.25)
        settings_layout.addWidget(self.sp_penalty)

        self.chk_require = QCheckBox("必须作答")
        settings_layout.addWidget(self.chk_require)

        self.chk_shuffle = QCheckBox("随机顺序")
        self.chk_shuffle.setEnabled(self.config.enable_question_shuffling)
        settings_layout.addWidget(self.chk_shuffle)

        self.btn_save = QPushButton("保存试卷")
        self.btn_save.clicked.connect(self.save_quiz)
        settings_layout.addWidget(self.btn_save)

        self.btn_start = QPushButton("开始答题")
        self.btn_start.clicked.connect(self.start_quiz)
        settings_layout.addWidget(self.btn_start)

        # ---------- 题目展示 ----------
        self.lbl_progress = QLabel("")
        self.lbl_progress.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(self.lbl_progress)

        self.lbl_question = QLabel("")
        self.lbl_question.setWordWrap(True)
        self.lbl_question.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.lbl_question.setMinimumHeight(60)
        main_layout.addWidget(self.lbl_question)

        # ---------- 选项（每题按实际选项数重建）----------
        self.opt_group = QButtonGroup()
        self.opt_group.buttonClicked[int].connect(self.on_option_selected)
        self.opt_box = QGroupBox("选项")
        self.opt_box.setObjectName("opt_box")
        self.opt_layout = QVBoxLayout()
        self.opt_layout.setSpacing(10)
        self.opt_box.setLayout(self.opt_layout)
        main_layout.addWidget(self.opt_box)

        # ---------- 按钮区 ----------
        btn_row = QHBoxLayout()
        btn_row.setSpacing(16)
        main_layout.addLayout(btn_row)

        self.btn_next = QPushButton("下一题")
        self.btn_next.clicked.connect(self.next_question)
        self.btn_next.setEnabled(False)
        btn_row.addWidget(self.btn_next)

        self.btn_retake = QPushButton("重新作答")
        self.btn_retake.clicked.connect(self.retake_quiz)
        self.btn_retake.setEnabled(False)
        btn_row.addWidget(self.btn_retake)

        self.btn_finish = QPushButton("结束答题")
        self.btn_finish.clicked.connect(self.reset_view)
        btn_row.addWidget(self.btn_finish)

        # ---------- 反馈 ----------
        self.lbl_feedback = QLabel("")
        self.lbl_feedback.setWordWrap(True)
        self.lbl_feedback.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.lbl_feedback.setMinimumHeight(40)
        main_layout.addWidget(self.lbl_feedback)

        self._buttons = (self.btn_upload, self.btn_open, self.btn_fallback, self.btn_save,
                         self.btn_start, self.btn_next, self.btn_retake, self.btn_finish)
        self._settings_widgets = (self.chk_negative, self.sp_penalty, self.chk_require, self.chk_shuffle)

    # -------------------------------------------------
    def _apply_style(self):
        # 字号由 adjust_ui_scaling 控制，这里只管颜色
        QApplication.setStyle("Fusion")
        self.setStyleSheet("""
            QMainWindow, QWidget { background-color: #f7f7f2; color: #222; }
            QGroupBox#opt_box { border: 1px solid #ccc; border-radius: 6px; padding: 10px; }
            QPushButton { background-color: #3c8d5a; color: #fff; border-radius: 6px; padding: 6px 14px; }
            QPushButton:disabled { background-color: #bbb; }
        """)

    # -------------------------------------------------
    def _scoring_config(self) -> ScoringConfig:
        return ScoringConfig(
            enable_negative=self.chk_negative.isChecked(),
            penalty=self.sp_penalty.value(),
            require_answer=self.chk_require.isChecked(),
            marks_per_question=self.config.default_marks_per_question,
            shuffle_questions=self.chk_shuffle.isChecked(),
        )

    def _apply_scoring_config(self, settings: ScoringConfig):
        self.chk_negative.setChecked(settings.enable_negative)
        self.sp_penalty.setValue(settings.penalty)
        self.chk_require.setChecked(settings.require_answer)
        self.chk_shuffle.setChecked(settings.shuffle_questions)

    def _selected_questions(self) -> List[QuestionRecord]:
        return self.bank.select(self.cb_bank.currentText())

    def _show_bank(self, name: str):
        if self.cb_bank.findText(name) == -1:
            self.cb_bank.addItem(name)
        self.cb_bank.setCurrentText(name)

    # ---- 上传题库 ----
    def upload_bank(self):
        files, _ = QFileDialog.getOpenFileNames(
            self, "选择题库文件", "", "题库 (*.docx *.txt)"
        )
        for f in files:
            try:
                name, qs, warnings = self.bank.load(f, self.config.default_marks_per_question)
            except Exception as e:
                logger.exception("Failed to load bank %s", f)
                QMessageBox.warning(self, "错误", f"加载 {Path(f).name} 时出错:\n{e}")
                continue
            self._show_bank(name)
            msg = f"已加载题库《{name}》，共 {len(qs)} 题"
            if warnings:
                msg += f"\n跳过 {len(warnings)} 个格式不正确的题块：\n" + "\n".join(str(w) for w in warnings[:5])
            QMessageBox.information(self, "完成", msg)

    # ---- 打开已保存的试卷 ----
    def open_quiz(self):
        try:
            quizzes = self.store.list_quizzes()
        except OSError as e:
            QMessageBox.warning(self, "错误", f"读取试卷目录失败:\n{e}")
            return
        if not quizzes:
            QMessageBox.information(self, "提示", f"{self.store.root} 中还没有保存的试卷。")
            return

        labels = [f"{q.title}（{len(q.questions)} 题，{q.created_at[:10]}，#{(q.id or '')[:8]}）" for q in quizzes]
        label, ok = QInputDialog.getItem(self, "打开试卷", "选择试卷：", labels, 0, False)
        if not ok:
            return
        quiz = quizzes[labels.index(label)]
        self._show_bank(self.bank.put(quiz.title, quiz.questions))
        self._apply_scoring_config(quiz.settings)
        self.setWindowTitle(f"答题小软件 - {quiz.title}")

    # ---- 兜底出题 ----
    def add_fallback_bank(self):
        topic = self.ed_topic.text().strip()
        qs = generate_fallback(topic, self.config.default_question_count,
                               self.config.default_marks_per_question)
        self._show_bank(self.bank.put(topic or "兜底题目", qs))

    # ---- 保存试卷 ----
    def save_quiz(self):
        title, ok = QInputDialog.getText(self, "保存试卷", "试卷名称：")
        if not ok:
            return
        quiz = QuizRecord(
            title=title.strip(),
            questions=self._selected_questions(),
            settings=self._scoring_config(),
            topic=self.ed_topic.text().strip() or None,
            difficulty=self.config.default_difficulty,
        )
        try:
            quiz_id = self.store.create_quiz(quiz)
        except InvalidInput as e:
            QMessageBox.warning(self, "提示", str(e))
            return
        except OSError as e:
            QMessageBox.warning(self, "错误", f"保存失败:\n{e}")
            return
        QMessageBox.information(self, "已保存", f"试卷编号：{quiz_id}")

    # -------------------------------------------------
    # ---- 开始答题 ----
    def start_quiz(self):
        quiz = QuizRecord(title=self.cb_bank.currentText(), questions=self._selected_questions(),
                          settings=self._scoring_config())
        try:
            self.session = QuizSession.from_quiz(quiz)
        except InvalidInput as e:
            QMessageBox.warning(self, "提示", f"当前没有可用的题目，请先上传题库。\n{e}")
            return
        self.btn_retake.setEnabled(False)
        self.show_current_question()

    # ---- 展示当前题目 ----
    def show_current_question(self):
        s = self.session
        q = s.current_question
        current, total = s.progress()
        self.lbl_progress.setText(f"第 {current}/{total} 题")
        self.lbl_question.setText(q.text)

        for rb in self.opt_radios:
            self.opt_group.removeButton(rb)
            self.opt_layout.removeWidget(rb)
            rb.deleteLater()
        self.opt_radios = []
        for i, opt in enumerate(q.options):
            rb = QRadioButton(f"{chr(ord('A') + i)}. {opt}")
            rb.setStyleSheet(f"font-size: {self.current_font_size}pt; padding: 6px 12px;")
            self.opt_group.addButton(rb, i)
            self.opt_layout.addWidget(rb)
            self.opt_radios.append(rb)

        self.btn_next.setText("完成" if current == total else "下一题")
        self.btn_next.setEnabled(True)
        self.lbl_feedback.clear()

    def on_option_selected(self, index: int):
        if self.session is not None and not self.session.is_completed:
            self.session.select_answer(index)

    # ---- 下一题 ----
    def next_question(self):
        try:
            self.session.advance()
        except AnswerRequired:
            QMessageBox.warning(self, "提示", "请先选择一个选项！")
            return
        if self.session.is_completed:
            self.show_result()
        else:
            self.show_current_question()

    # ---- 结果 ----
    def show_result(self):
        r = self.session.summary()
        color = "#5cb85c" if r.passed else "#d9534f"
        self.lbl_feedback.setStyleSheet(f"color: {color};")
        self.lbl_feedback.setText(
            f"得分 {r.score:g} / {r.total_possible_marks:g}（答对 {r.correct_count} / {r.total_questions} 题）"
        )
        self.btn_next.setEnabled(False)
        self.btn_retake.setEnabled(True)

    def retake_quiz(self):
        self.session.retake()
        self.btn_retake.setEnabled(False)
        self.show_current_question()

    # ---- 结束答题 ----
    def reset_view(self):
        self.session = None
        self.lbl_progress.setText("")
        self.lbl_question.setText("")
        self.lbl_feedback.setText("")
        for rb in self.opt_radios:
            rb.hide()
        self.btn_next.setEnabled(False)
        self.btn_retake.setEnabled(False)


def main():
    logging.basicConfig(
        level=os.environ.get("QUIZ_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    window = QuizWindow(AppConfig.from_env())
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
