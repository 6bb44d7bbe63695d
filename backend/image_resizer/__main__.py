from image_resizer.worker import main

main()
