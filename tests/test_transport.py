"""
Tests for transport — pyusb and HIDAPI control-transfer backends.

Tests cover:
- Request type / SET_REPORT constants
- PyUsbTransport discovery, kernel driver detach, control transfer, close
- HidApiTransport interface selection, feature report write, close
- Backend lookup by config name
"""

import unittest
from unittest.mock import MagicMock, patch

import usb.core

from skiller.transport import (
    BACKENDS,
    FEATURE_REPORT_VALUE,
    HID_SET_REPORT,
    REQUEST_TYPE_OUT_CLASS_INTERFACE,
    HidApiTransport,
    PyUsbTransport,
    get_backend,
)

FRAME = bytes([7, 2, 1, 0, 0, 0, 0, 0])


class TestConstants(unittest.TestCase):

    def test_request_type(self):
        """Host-to-device | class | interface."""
        self.assertEqual(REQUEST_TYPE_OUT_CLASS_INTERFACE, 0x21)

    def test_set_report(self):
        self.assertEqual(HID_SET_REPORT, 9)
        self.assertEqual(FEATURE_REPORT_VALUE, 0x0307)


class TestPyUsbFind(unittest.TestCase):

    @patch('skiller.transport.usb.core.find')
    def test_not_found(self, mock_find):
        mock_find.return_value = None
        self.assertIsNone(PyUsbTransport.find(0x04d9, 0xa096, 1))
        mock_find.assert_called_once_with(idVendor=0x04d9, idProduct=0xa096)

    @patch('skiller.transport.usb.core.find')
    def test_found(self, mock_find):
        mock_find.return_value = MagicMock()
        t = PyUsbTransport.find(0x04d9, 0xa096, 1)
        self.assertIsInstance(t, PyUsbTransport)

    @patch('skiller.transport.usb.core.find')
    def test_enumeration_error_propagates(self, mock_find):
        mock_find.side_effect = usb.core.USBError("Access denied")
        with self.assertRaises(usb.core.USBError):
            PyUsbTransport.find(0x04d9, 0xa096, 1)


class TestPyUsbDetach(unittest.TestCase):

    def setUp(self):
        self.dev = MagicMock()
        self.t = PyUsbTransport(self.dev, 1)

    def test_detach_when_active(self):
        self.dev.is_kernel_driver_active.return_value = True
        self.assertTrue(self.t.detach_if_active())
        self.dev.is_kernel_driver_active.assert_called_once_with(1)
        self.dev.detach_kernel_driver.assert_called_once_with(1)

    def test_no_detach_when_inactive(self):
        self.dev.is_kernel_driver_active.return_value = False
        self.assertFalse(self.t.detach_if_active())
        self.dev.detach_kernel_driver.assert_not_called()

    def test_unsupported_platform_is_noop(self):
        self.dev.is_kernel_driver_active.side_effect = NotImplementedError
        self.assertFalse(self.t.detach_if_active())
        self.dev.detach_kernel_driver.assert_not_called()

    def test_detach_error_propagates(self):
        self.dev.is_kernel_driver_active.return_value = True
        self.dev.detach_kernel_driver.side_effect = usb.core.USBError("Busy")
        with self.assertRaises(usb.core.USBError):
            self.t.detach_if_active()


class TestPyUsbWrite(unittest.TestCase):

    def test_ctrl_transfer_args(self):
        dev = MagicMock()
        dev.ctrl_transfer.return_value = 8
        t = PyUsbTransport(dev, 1)
        self.assertEqual(t.write_control(FRAME, 1500), 8)
        dev.ctrl_transfer.assert_called_once_with(0x21, 9, 0x0307, 1, FRAME, timeout=1500)

    def test_interface_is_windex(self):
        dev = MagicMock()
        PyUsbTransport(dev, 2).write_control(FRAME, 100)
        self.assertEqual(dev.ctrl_transfer.call_args.args[3], 2)

    def test_transfer_error_propagates(self):
        dev = MagicMock()
        dev.ctrl_transfer.side_effect = usb.core.USBTimeoutError("Operation timed out")
        with self.assertRaises(usb.core.USBError):
            PyUsbTransport(dev, 1).write_control(FRAME, 100)

    @patch('skiller.transport.usb.util.dispose_resources')
    def test_write_after_close(self, mock_dispose):
        t = PyUsbTransport(MagicMock(), 1)
        t.close()
        with self.assertRaises(RuntimeError):
            t.write_control(FRAME, 100)


class TestPyUsbClose(unittest.TestCase):

    @patch('skiller.transport.usb.util.dispose_resources')
    def test_close_disposes_once(self, mock_dispose):
        dev = MagicMock()
        t = PyUsbTransport(dev, 1)
        t.close()
        t.close()
        mock_dispose.assert_called_once_with(dev)
        self.assertIn("closed", t.description)

    def test_description(self):
        dev = MagicMock()
        dev.bus = 1
        dev.address = 7
        self.assertEqual(PyUsbTransport(dev, 1).description,
                         "pyusb bus 1 address 7 interface 1")


class TestHidApi(unittest.TestCase):

    def setUp(self):
        self.hidapi = MagicMock()
        patches = [
            patch('skiller.transport.hidapi', self.hidapi),
            patch('skiller.transport.HIDAPI_AVAILABLE', True),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def test_picks_matching_interface(self):
        self.hidapi.enumerate.return_value = [
            {'interface_number': 0, 'path': b'/dev/hidraw3'},
            {'interface_number': 1, 'path': b'/dev/hidraw4'},
        ]
        t = HidApiTransport.find(0x04d9, 0xa096, 1)
        self.assertIsInstance(t, HidApiTransport)
        self.hidapi.enumerate.assert_called_once_with(0x04d9, 0xa096)
        self.hidapi.Device.assert_called_once_with(path=b'/dev/hidraw4')

    def test_not_found(self):
        self.hidapi.enumerate.return_value = [
            {'interface_number': 0, 'path': b'/dev/hidraw3'},
        ]
        self.assertIsNone(HidApiTransport.find(0x04d9, 0xa096, 1))
        self.hidapi.Device.assert_not_called()

    def test_feature_report(self):
        dev = MagicMock()
        dev.send_feature_report.return_value = 8
        t = HidApiTransport(dev, 1)
        self.assertEqual(t.write_control(FRAME, 2000), 8)
        dev.send_feature_report.assert_called_once_with(FRAME)

    def test_detach_is_noop(self):
        self.assertFalse(HidApiTransport(MagicMock(), 1).detach_if_active())

    def test_close(self):
        dev = MagicMock()
        t = HidApiTransport(dev, 1)
        t.close()
        t.close()
        dev.close.assert_called_once_with()
        with self.assertRaises(RuntimeError):
            t.write_control(FRAME, 100)


class TestHidApiMissing(unittest.TestCase):

    @patch('skiller.transport.HIDAPI_AVAILABLE', False)
    def test_find_raises_import_error(self):
        with self.assertRaises(ImportError):
            HidApiTransport.find(0x04d9, 0xa096, 1)


class TestBackends(unittest.TestCase):

    def test_names(self):
        self.assertIs(get_backend('pyusb'), PyUsbTransport)
        self.assertIs(get_backend('hidapi'), HidApiTransport)
        self.assertEqual(set(BACKENDS), {'pyusb', 'hidapi'})

    def test_unknown(self):
        with self.assertRaises(ValueError):
            get_backend('serial')


if __name__ == '__main__':
    unittest.main()
