"""QSS dark theme stylesheet."""

COLORS = {
    "bg": "#0a0b0e",
    "surface": "#12141a",
    "border": "#252830",
    "text": "#e8e9ed",
    "text_dim": "#8b8e99",
    "accent": "#f6ad55",
}

DARK_THEME = """
/* ── Global ── */
QMainWindow, QWidget {
    background-color: %(bg)s;
    color: %(text)s;
    font-family: -apple-system, "Segoe UI", "Helvetica Neue", Arial, sans-serif;
    font-size: 12px;
}

/* ── QLabel ── */
QLabel {
    color: %(text)s;
    background: transparent;
    padding: 0px 6px;
}

QLabel#highlightLabel {
    color: %(accent)s;
}

/* ── Status bar ── */
QStatusBar {
    background-color: %(surface)s;
    border-top: 1px solid %(border)s;
    color: %(text_dim)s;
}

/* ── Menus ── */
QMenuBar, QMenu {
    background-color: %(surface)s;
    color: %(text)s;
}

QMenu::item:selected, QMenuBar::item:selected {
    background-color: %(border)s;
}
""" % COLORS
