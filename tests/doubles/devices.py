"""Device, resource and endpoint builders shared by the tests."""

from asyncua import ua

from opcua_bridge.types import AdminState, Device, OperatingState, ResourceDescriptor

DEVICE_NAME = "TestDevice"
ENDPOINT = "opc.tcp://test.local:4840"


def endpoint_description(policy: str = "None", mode: ua.MessageSecurityMode = ua.MessageSecurityMode.None_):
    description = ua.EndpointDescription()
    description.EndpointUrl = ENDPOINT
    description.SecurityPolicyUri = f"http://opcfoundation.org/UA/SecurityPolicy#{policy}"
    description.SecurityMode = mode
    return description


def make_device(
    admin_state: AdminState = AdminState.UNLOCKED,
    operating_state: OperatingState = OperatingState.UP,
    **properties
) -> Device:
    opcua = {"Endpoint": ENDPOINT}
    opcua.update(properties)
    return Device(
        name=DEVICE_NAME,
        admin_state=admin_state,
        operating_state=operating_state,
        protocols={"opcua": opcua},
    )


RESOURCES = [
    ResourceDescriptor.from_dict({"name": "Temperature", "value_type": "Float64",
                                  "attributes": {"nodeId": "ns=2;s=Temperature"}}),
    ResourceDescriptor.from_dict({"name": "Counter", "value_type": "Int32",
                                  "attributes": {"nodeId": "ns=2;i=1001"}}),
    ResourceDescriptor.from_dict({"name": "Secret", "value_type": "String", "is_hidden": True,
                                  "attributes": {"nodeId": "ns=2;s=Secret"}}),
    ResourceDescriptor.from_dict({"name": "Square", "value_type": "String",
                                  "attributes": {"methodId": "ns=2;s=square", "objectId": "ns=2;s=main"}}),
    ResourceDescriptor.from_dict({"name": "HiddenMethod", "value_type": "String", "is_hidden": True,
                                  "attributes": {"methodId": "ns=2;s=reset", "objectId": "ns=2;s=main"}}),
    ResourceDescriptor.from_dict({"name": "NoObject", "value_type": "String",
                                  "attributes": {"methodId": "ns=2;s=square"}}),
]
