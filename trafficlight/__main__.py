from trafficlight.main import main

main()
