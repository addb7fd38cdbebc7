"""InfluxDB 2.x sink using the official client's blocking write API."""

from __future__ import annotations

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException

from app.schemas import EnvironmentRecord
from datastore.errors import SinkError


class InfluxDBSink:

    def __init__(self, url: str, token: str, org: str, bucket: str) -> None:
        self.bucket = bucket
        self.org = org
        self._client = InfluxDBClient(url=url, token=token, org=org)
        self._write_api = self._client.write_api(write_options=SYNCHRONOUS)

    def write(self, record: EnvironmentRecord) -> None:
        try:
            self._write_api.write(bucket=self.bucket, org=self.org, record=build_point(record))
        except ApiException as exc:
            raise SinkError(f"InfluxDB rejected write ({exc.status}): {exc.reason}") from exc

    def close(self) -> None:
        self._write_api.close()
        self._client.close()


def build_point(record: EnvironmentRecord) -> Point:
    return (
        Point(record.measurement)
        .field("temp", record.temperature_c)
        .field("pressure", record.pressure_hpa)
        .field("humidity", record.humidity)
        .time(record.timestamp, WritePrecision.NS)
    )
