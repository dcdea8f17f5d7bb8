from PyQt5.QtGui import QIcon, QPixmap
from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import QAction, QSystemTrayIcon

from crab_alert.transport import ConnectionState, TransportClient
from crab_alert.tray_icon import ConnectionIndicator, create_status_icon, status_text

from tests.fakes import SocketFactory


def make_icon():
    pixmap = QPixmap(64, 64)
    pixmap.fill(Qt.blue)
    return QIcon(pixmap)


def test_status_text():
    assert status_text(ConnectionState.CONNECTED) == "Connected to MailCrab"
    assert status_text(ConnectionState.DISCONNECTED) == "Waiting for MailCrab..."
    assert status_text(ConnectionState.CONNECTING) == "Waiting for MailCrab..."


def test_connected_icon_is_unchanged():
    icon = make_icon()
    assert create_status_icon(icon, True) is icon


def test_disconnected_icon_is_redrawn():
    icon = make_icon()

    status_icon = create_status_icon(icon, False)

    assert status_icon is not icon
    assert not status_icon.isNull()


def test_null_icon_is_returned_as_is():
    icon = QIcon()
    assert create_status_icon(icon, False) is icon


def test_indicator_follows_transport():
    factory = SocketFactory()
    transport = TransportClient("ws://localhost:1080/ws", socket_factory=factory)
    tray_icon = QSystemTrayIcon()
    status_action = QAction("")
    indicator = ConnectionIndicator(tray_icon, status_action, base_icon=make_icon())

    indicator.attach(transport)
    texts = [status_action.text()]
    # Connected after the indicator, so it sees the updated text
    transport.state_changed.connect(lambda state: texts.append(status_action.text()))

    transport.open()
    factory.last.connected.emit()
    assert tray_icon.toolTip() == "CrabAlert (Connected to MailCrab)"

    factory.last.error.emit(1)

    assert texts == [
        "Waiting for MailCrab...",
        "Waiting for MailCrab...",
        "Connected to MailCrab",
        "Waiting for MailCrab...",
    ]
    assert tray_icon.toolTip() == "CrabAlert (Waiting for MailCrab...)"
    assert not tray_icon.icon().isNull()
