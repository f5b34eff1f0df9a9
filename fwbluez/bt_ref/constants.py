"""
Core constants for fwbluez.

D-Bus / BlueZ names, result codes and the fixed timeouts used when talking to
the BlueZ daemon, organised by category.
"""

# D-Bus Core Constants
DBUS_OM_IFACE = "org.freedesktop.DBus.ObjectManager"
DBUS_OM_PATH = "/"

# BlueZ Core Constants
BLUEZ_SERVICE_NAME = "org.bluez"

# BlueZ Interface Constants
ADAPTER_INTERFACE = BLUEZ_SERVICE_NAME + ".Adapter1"
DEVICE_INTERFACE = BLUEZ_SERVICE_NAME + ".Device1"

# GATT Interface Constants
GATT_CHARACTERISTIC_INTERFACE = BLUEZ_SERVICE_NAME + ".GattCharacteristic1"

# Device1 properties decoded during coldplug
DEVICE_PROPERTY_ADDRESS = "Address"
DEVICE_PROPERTY_ADAPTER = "Adapter"
DEVICE_PROPERTY_NAME = "Name"
DEVICE_PROPERTY_ICON = "Icon"
DEVICE_PROPERTY_MODALIAS = "Modalias"
DEVICE_PROPERTY_CONNECTED = "Connected"

# Timeouts (milliseconds)
DEFAULT_PROXY_TIMEOUT_MS = 5000
COLDPLUG_TIMEOUT_MS = 25000

# D-Bus error names that mean "the call did not complete in time"
DBUS_TIMEOUT_ERROR_NAMES = (
    "org.freedesktop.DBus.Error.NoReply",
    "org.freedesktop.DBus.Error.Timeout",
    "org.freedesktop.DBus.Error.TimedOut",
    "org.bluez.Error.Timeout",
)

# Result/Error Codes
RESULT_ERR = 1
RESULT_ERR_NOT_CONNECTED = 2
RESULT_ERR_NOT_SUPPORTED = 3
RESULT_ERR_BAD_ARGS = 8
RESULT_ERR_NO_REPLY = 14
RESULT_ERR_METHOD_CALL_FAIL = 21

# Device flags
DEVICE_FLAG_CONNECTED = "connected"
DEVICE_FLAG_NO_GUID_MATCHING = "no-guid-matching"

# Modalias subsystems
MODALIAS_PREFIX_USB = "usb:"
MODALIAS_PREFIX_BLUETOOTH = "bluetooth:"
SUBSYSTEM_USB = "USB"
SUBSYSTEM_BLE = "BLE"

# Pretty-print column used by append_kv()
PRETTY_PRINT__KV_ALIGN = 24
