from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description() -> LaunchDescription:
    return LaunchDescription(
        [
            DeclareLaunchArgument("cid", default_value="111"),
            DeclareLaunchArgument("seaman_ip", default_value="192.168.0.1"),
            Node(
                package="seaman_gateway",
                executable="seaman_gateway",
                name="seaman_gateway",
                output="screen",
                arguments=[
                    "--cid",
                    LaunchConfiguration("cid"),
                    "--seaman_ip",
                    LaunchConfiguration("seaman_ip"),
                ],
                parameters=[
                    {
                        "command_port": 43000,
                        "telemetry_port": 8888,
                        "telemetry_timeout_s": 0.2,
                        "command_topic_prefix": "/seaman/pedal_position_request",
                        "status_pub_hz": 2.0,
                    }
                ],
            ),
        ]
    )
