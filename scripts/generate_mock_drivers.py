import csv
import random
import secrets

from identifiers import IdType, generate_id

# Accra central business district
BASE_LAT = 5.6037
BASE_LON = -0.1870


def generate_mock_drivers(filename="mock_drivers_100.csv", count=100):
    with open(filename, mode='w', newline='') as file:
        writer = csv.writer(file)
        writer.writerow(["driver_id", "lat", "lon", "status", "device_token"])

        for _ in range(count):
            driver_id = generate_id(IdType.DRIVER)

            # Scatter drivers randomly around the city center (roughly +/- 8km)
            lat = BASE_LAT + (random.random() - 0.5) * 0.15
            lon = BASE_LON + (random.random() - 0.5) * 0.15

            # 80% chance of being online, the rest offline or on break
            roll = random.random()
            if roll < 0.8:
                status = "online"
            elif roll < 0.9:
                status = "on_break"
            else:
                status = "offline"

            # Some drivers have not registered a device for push yet
            device_token = secrets.token_hex(16) if random.random() < 0.9 else ""

            writer.writerow([driver_id, round(lat, 6), round(lon, 6), status, device_token])

    print(f"Successfully generated {count} mock drivers into '{filename}'.")


if __name__ == "__main__":
    generate_mock_drivers()
