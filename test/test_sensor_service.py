import pytest

from common.exceptions import HttpError, ResponseParseError
from core.sensor_service import SensorService
from fakes import make_response, sent_params, sent_url

SENSOR_DETAILS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<sensordata>
  <prtg-version>23.1.82.2175</prtg-version>
  <name><![CDATA[Ping]]></name>
  <sensortype><![CDATA[ping]]></sensortype>
  <parentdevicename><![CDATA[Core Switch]]></parentdevicename>
  <statustext><![CDATA[Up]]></statustext>
</sensordata>"""

PROPERTY_XML = """<?xml version="1.0" encoding="UTF-8" ?>
<prtg>
  <version>23.1.82.2175</version>
  <result><![CDATA[60]]></result>
</prtg>"""


@pytest.fixture
def service(client):
    return SensorService(client)


class TestSensorDetails:

    def test_details(self, service, session):
        service.client.http.get.return_value = make_response(SENSOR_DETAILS_XML)

        details = service.get_sensor_details(2002, session=session)

        assert details["name"] == "Ping"
        assert details["parentdevicename"] == "Core Switch"
        assert sent_url(service.client).endswith("/api/getsensordetails.xml")
        assert sent_params(service.client)["id"] == 2002

    def test_invalid_id(self, service, session):
        with pytest.raises(ValueError, match="无效的对象ID"):
            service.get_sensor_details("abc", session=session)
        with pytest.raises(ValueError):
            service.get_sensor_details(0, session=session)


class TestProperties:
    """测试属性读写"""

    def test_get_property(self, service, session):
        service.client.http.get.return_value = make_response(PROPERTY_XML)

        assert service.get_property(2002, "interval", session=session) == "60"
        params = sent_params(service.client)
        assert params["name"] == "interval"
        assert params["show"] == "text"

    def test_get_property_without_result(self, service, session):
        service.client.http.get.return_value = make_response("<prtg><version>1</version></prtg>")
        assert service.get_property(2002, "interval", session=session) is None

    def test_set_property_echoes_id(self, service, session):
        service.client.http.get.return_value = make_response("<HTML><BODY>OK</BODY></HTML>")

        assert service.set_property("2002", "interval", 300, session=session) == 2002
        params = sent_params(service.client)
        assert sent_url(service.client).endswith("/api/setobjectproperty.htm")
        assert params["value"] == 300

    def test_set_property_http_error(self, service, session):
        service.client.http.get.return_value = make_response("error", status_code=400)
        with pytest.raises(HttpError):
            service.set_property(2002, "interval", 300, session=session)


class TestPauseResume:
    """测试暂停与恢复"""

    def test_pause(self, service, session):
        assert service.pause(2002, message="maintenance", session=session) == 2002

        assert sent_url(service.client).endswith("/api/pause.htm")
        params = sent_params(service.client)
        assert params["action"] == 0
        assert params["pausemsg"] == "maintenance"

    def test_pause_without_message(self, service, session):
        service.pause(2002, session=session)
        assert "pausemsg" not in sent_params(service.client)

    def test_pause_for_duration(self, service, session):
        service.pause(2002, message="window", duration=30, session=session)

        assert sent_url(service.client).endswith("/api/pauseobjectfor.htm")
        params = sent_params(service.client)
        assert params["duration"] == 30
        assert "action" not in params

    def test_invalid_duration(self, service, session):
        with pytest.raises(ValueError):
            service.pause(2002, duration=0, session=session)
        service.client.http.get.assert_not_called()

    def test_resume(self, service, session):
        assert service.resume("2002", session=session) == 2002
        assert sent_params(service.client)["action"] == 1


class TestClone:
    """测试克隆传感器"""

    def test_clone_id_from_body(self, service, session):
        service.client.http.get.return_value = make_response(
            '<html><a href="/sensor.htm?id=4711&tabid=1">Ping (copy)</a></html>')

        assert service.clone(2002, "Ping (copy)", 40, session=session) == 4711
        params = sent_params(service.client)
        assert params["id"] == 2002
        assert params["name"] == "Ping (copy)"
        assert params["targetid"] == 40

    def test_clone_id_from_redirect_url(self, service, session):
        service.client.http.get.return_value = make_response(
            "<html>OK</html>", url="https://prtg.example.com/sensor.htm?id=5000")

        assert service.clone(2002, "copy", 40, session=session) == 5000

    def test_clone_without_id(self, service, session):
        service.client.http.get.return_value = make_response(
            "<html>OK</html>", url="https://prtg.example.com/api/duplicateobject.htm")

        with pytest.raises(ResponseParseError):
            service.clone(2002, "copy", 40, session=session)

    def test_invalid_target(self, service, session):
        with pytest.raises(ValueError):
            service.clone(2002, "copy", "device", session=session)
